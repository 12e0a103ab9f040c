# ledgerscan/ports/storage.py
from __future__ import annotations

from typing import Protocol, Sequence
from ..domain.classification import FilterKind
from ..domain.models import ApplicationAccount, ChunkRec, SnapshotPaths


class SnapshotSink(Protocol):
    """Port for persisting one run's account lists (e.g., timestamped JSON files)."""

    def write(
        self,
        filter_kind: FilterKind,
        all_matched: Sequence[ApplicationAccount],
        filtered: Sequence[ApplicationAccount],
    ) -> SnapshotPaths:
        """Persist both lists; must never overwrite an earlier run."""


class ManifestSink(Protocol):
    """Port for appending per-chunk status records (e.g., JSONL manifest)."""

    async def append(self, rec: ChunkRec) -> None:
        """Append a manifest record (callers handle ordering)."""
