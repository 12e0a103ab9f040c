from __future__ import annotations

from typing import AsyncIterator, Sequence

from ..domain.models import AddressChunk, ChunkFetch, RawAccount
from ..domain.value_types import Address, Commitment
from ..logging_config import get_logger
from ..ports.rpc import LedgerClient
from .planning import plan_chunks

_LOGGER = get_logger(__name__)


async def fetch_chunk(rpc: LedgerClient, chunk: AddressChunk, commitment: Commitment) -> ChunkFetch:
    """One getMultipleAccounts call. Any failure is folded into the result, never raised."""
    try:
        slots = await rpc.get_multiple_accounts(list(chunk.addresses), commitment)
        if len(slots) != chunk.size():
            raise ValueError(f"expected {chunk.size()} slots, got {len(slots)}")
    except Exception as e:
        err = f"{type(e).__name__}: {e}"
        _LOGGER.error("chunk_fetch_failed", index=chunk.index, size=chunk.size(), error=err)
        return ChunkFetch(chunk=chunk, error=err)
    accounts = tuple(RawAccount(address=a, data=d) for a, d in zip(chunk.addresses, slots))
    _LOGGER.debug("chunk_fetched", index=chunk.index, size=chunk.size())
    return ChunkFetch(chunk=chunk, accounts=accounts)


async def iter_account_chunks(
    rpc: LedgerClient,
    addresses: Sequence[Address],
    chunk_size: int,
    commitment: Commitment = "confirmed",
) -> AsyncIterator[ChunkFetch]:
    """
    Fetch chunks strictly one after another. A failed chunk is yielded with
    `error` set and no accounts; it is not retried and iteration continues.
    """
    for chunk in plan_chunks(addresses, chunk_size):
        yield await fetch_chunk(rpc, chunk, commitment)


async def fetch_all(
    rpc: LedgerClient,
    addresses: Sequence[Address],
    chunk_size: int,
    commitment: Commitment = "confirmed",
) -> list[RawAccount]:
    """Every slot of every successful chunk, in input order (absent slots included)."""
    out: list[RawAccount] = []
    async for fetched in iter_account_chunks(rpc, addresses, chunk_size, commitment):
        out.extend(fetched.accounts)
    return out
