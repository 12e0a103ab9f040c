from __future__ import annotations
import time
from typing import Callable

from ..config import validate_chunk_size
from ..domain.classification import FilterKind, matches_filter, parse_filter_kind
from ..domain.decoding import decode_application_account, matches_discriminator, strip_discriminator
from ..domain.models import ApplicationAccount, ChunkFetch, ChunkRec, ScanResult, ScanSummary, SnapshotPaths
from ..domain.value_types import Commitment, ProgramId
from ..errors import AccountDecodeError, RpcError
from ..logging_config import get_logger
from ..ports.rpc import LedgerClient
from ..ports.storage import ManifestSink, SnapshotSink
from .fetching import iter_account_chunks

_LOGGER = get_logger(__name__)

ChunkCallback = Callable[[ChunkRec, int], None]   # (record, total_chunks)


def _process_chunk(
    fetched: ChunkFetch,
    filter_kind: FilterKind,
    summary: ScanSummary,
    all_matched: list[ApplicationAccount],
    filtered: list[ApplicationAccount],
) -> ChunkRec:
    chunk = fetched.chunk
    if not fetched.ok:
        summary.failed_chunks += 1
        summary.failed_addresses += chunk.size()
        return ChunkRec(index=chunk.index, size=chunk.size(), status="failed",
                        error=fetched.error, updated_at=time.time())

    matched = non_matching = empty = decode_failed = 0
    for raw in fetched.accounts:
        summary.fetched += 1
        if raw.is_empty:
            _LOGGER.debug("account_empty", address=raw.address)
            empty += 1
            continue
        # gate: never decode a foreign layout
        if not matches_discriminator(raw.data):
            _LOGGER.debug("account_wrong_discriminator", address=raw.address)
            non_matching += 1
            continue
        try:
            acc = decode_application_account(raw.address, strip_discriminator(raw.data))
        except AccountDecodeError as e:
            _LOGGER.warning("account_decode_failed", address=raw.address, error=str(e))
            decode_failed += 1
            continue

        matched += 1
        category = acc.category
        all_matched.append(acc)
        summary.breakdown[category] += 1
        if matches_filter(filter_kind, category):
            filtered.append(acc)
        _LOGGER.info("application_account", address=acc.address, category=category.value,
                     pre_req_ts=acc.pre_req_ts, pre_req_rs=acc.pre_req_rs, github=acc.github)

    summary.empty += empty
    summary.non_matching += non_matching
    summary.decode_failed += decode_failed
    summary.matched += matched
    return ChunkRec(index=chunk.index, size=chunk.size(), status="done",
                    matched=matched, non_matching=non_matching, empty=empty,
                    decode_failed=decode_failed, updated_at=time.time())


async def scan_accounts(
    *,
    rpc: LedgerClient,
    program_id: ProgramId,
    filter_kind: FilterKind | str = FilterKind.ALL,
    chunk_size: int,
    commitment: Commitment = "confirmed",
    manifest: ManifestSink | None = None,
    on_chunk: ChunkCallback | None = None,
) -> ScanResult:
    """
    Enumerate, fetch in chunks, match, decode, classify and filter.
    chunk_size=1 gives the one-account-at-a-time behaviour.
    Raises ConfigError before any remote call, RpcError if enumeration fails.
    """
    kind = parse_filter_kind(filter_kind)
    validate_chunk_size(chunk_size)

    # 1) enumerate (fatal on failure)
    try:
        addresses = await rpc.get_program_account_addresses(program_id, commitment)
    except RpcError:
        raise
    except Exception as e:
        raise RpcError(f"getProgramAccounts failed for {program_id}: {e}") from e
    _LOGGER.info("accounts_enumerated", program_id=program_id, count=len(addresses))

    summary = ScanSummary(total_addresses=len(addresses))
    summary.chunks = -(-len(addresses) // chunk_size)
    all_matched: list[ApplicationAccount] = []
    filtered: list[ApplicationAccount] = []

    # 2) chunks, each fully settled before the next fetch
    async for fetched in iter_account_chunks(rpc, addresses, chunk_size, commitment):
        rec = _process_chunk(fetched, kind, summary, all_matched, filtered)
        if manifest is not None:
            await manifest.append(rec)
        if on_chunk is not None:
            on_chunk(rec, summary.chunks)

    # 3) aggregate
    summary.filtered = len(filtered)
    _LOGGER.info("scan_completed", filter=kind.value, matched=summary.matched,
                 non_matching=summary.non_matching, decode_failed=summary.decode_failed,
                 failed_chunks=summary.failed_chunks, filtered=summary.filtered)
    return ScanResult(filter_kind=kind, all_matched=tuple(all_matched),
                      filtered=tuple(filtered), summary=summary)


async def scan_and_snapshot(
    *,
    rpc: LedgerClient,
    sink: SnapshotSink,
    program_id: ProgramId,
    filter_kind: FilterKind | str = FilterKind.ALL,
    chunk_size: int,
    commitment: Commitment = "confirmed",
    manifest: ManifestSink | None = None,
    on_chunk: ChunkCallback | None = None,
) -> tuple[ScanResult, SnapshotPaths]:
    result = await scan_accounts(
        rpc=rpc, program_id=program_id, filter_kind=filter_kind,
        chunk_size=chunk_size, commitment=commitment,
        manifest=manifest, on_chunk=on_chunk,
    )
    paths = sink.write(result.filter_kind, result.all_matched, result.filtered)
    _LOGGER.info("snapshot_written", run_id=paths.run_id,
                 filtered_path=paths.filtered_path, all_path=paths.all_path)
    return result, paths
