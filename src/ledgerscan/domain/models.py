from __future__ import annotations
from dataclasses import dataclass, field
from .classification import Category, FilterKind, classify, empty_breakdown
from .value_types import Address, Status


@dataclass(slots=True, frozen=True)
class ApplicationAccount:
    address: Address
    bump: int
    pre_req_ts: bool
    pre_req_rs: bool
    github: str

    @property
    def category(self) -> Category:
        return classify(self.pre_req_ts, self.pre_req_rs)


@dataclass(slots=True, frozen=True)
class RawAccount:
    address: Address
    data: bytes | None          # None when the slot came back null

    @property
    def is_empty(self) -> bool:
        return not self.data


@dataclass(slots=True, frozen=True)
class AddressChunk:
    index: int                  # 0-based position in the plan
    addresses: tuple[Address, ...]
    def size(self) -> int: return len(self.addresses)


@dataclass(slots=True, frozen=True)
class ChunkFetch:
    chunk: AddressChunk
    accounts: tuple[RawAccount, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True, frozen=True)
class ChunkRec:
    index: int
    size: int
    status: Status = "pending"
    error: str | None = None
    matched: int = 0
    non_matching: int = 0
    empty: int = 0
    decode_failed: int = 0
    updated_at: float = 0.0


@dataclass(slots=True)
class ScanSummary:
    total_addresses: int = 0
    chunks: int = 0
    fetched: int = 0            # slots returned by successful chunks
    empty: int = 0
    matched: int = 0
    non_matching: int = 0
    decode_failed: int = 0
    failed_chunks: int = 0
    failed_addresses: int = 0
    filtered: int = 0
    breakdown: dict[Category, int] = field(default_factory=empty_breakdown)


@dataclass(slots=True, frozen=True)
class ScanResult:
    filter_kind: FilterKind
    all_matched: tuple[ApplicationAccount, ...]
    filtered: tuple[ApplicationAccount, ...]
    summary: ScanSummary


@dataclass(slots=True, frozen=True)
class SnapshotPaths:
    run_id: str
    filtered_path: str
    all_path: str
