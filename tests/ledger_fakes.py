"""In-process fakes for the ledgerscan ports."""

from __future__ import annotations

from typing import Sequence

from ledgerscan.domain.decoding import APPLICATION_ACCOUNT_DISCRIMINATOR, encode_account_data
from ledgerscan.domain.models import ApplicationAccount, ChunkRec, SnapshotPaths
from ledgerscan.domain.value_types import Address
from ledgerscan.errors import RpcError


def make_account(address: str, bump: int = 1, ts: bool = False, rs: bool = False,
                 github: str = "octocat") -> ApplicationAccount:
    return ApplicationAccount(address=Address(address), bump=bump, pre_req_ts=ts,
                              pre_req_rs=rs, github=github)


def account_bytes(address: str, **kwargs) -> bytes:
    return encode_account_data(make_account(address, **kwargs))


def foreign_bytes() -> bytes:
    return bytes(b ^ 0xFF for b in APPLICATION_ACCOUNT_DISCRIMINATOR) + b"\x00" * 32


class FakeLedger:
    """Ledger client serving preset account bytes; chunks containing a
    failing address raise RpcError."""

    def __init__(self, accounts: dict[str, bytes | None],
                 failing: Sequence[str] = (), enumerate_error: Exception | None = None) -> None:
        self.accounts = accounts
        self.failing = set(failing)
        self.enumerate_error = enumerate_error
        self.enumerate_calls = 0
        self.batches: list[list[str]] = []
        self.closed = False

    async def get_program_account_addresses(self, program_id, commitment="confirmed"):
        self.enumerate_calls += 1
        if self.enumerate_error is not None:
            raise self.enumerate_error
        return [Address(a) for a in self.accounts]

    async def get_multiple_accounts(self, addresses, commitment="confirmed"):
        batch = list(addresses)
        self.batches.append(batch)
        if self.failing.intersection(batch):
            raise RpcError("simulated chunk failure")
        return [self.accounts.get(a) for a in batch]

    async def aclose(self) -> None:
        self.closed = True


class FakeManifest:
    def __init__(self) -> None:
        self.records: list[ChunkRec] = []

    async def append(self, rec: ChunkRec) -> None:
        self.records.append(rec)


class FakeSink:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def write(self, filter_kind, all_matched, filtered) -> SnapshotPaths:
        self.calls.append((filter_kind, list(all_matched), list(filtered)))
        return SnapshotPaths(run_id="run", filtered_path="f.json", all_path="a.json")


class FakeSheets:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, str, list]] = []

    async def update_values(self, spreadsheet_id, range_a1, rows) -> int:
        self.calls.append((spreadsheet_id, range_a1, [list(r) for r in rows]))
        if self.error is not None:
            raise self.error
        return sum(len(r) for r in rows)
