# ledgerscan/ports/sheets.py
from __future__ import annotations

from typing import Protocol, Sequence

Cell = str | int


class SheetsClient(Protocol):
    """Port for a remote tabular service accepting bulk range updates."""

    async def update_values(
        self,
        spreadsheet_id: str,
        range_a1: str,
        rows: Sequence[Sequence[Cell]],
    ) -> int:
        """Write `rows` starting at `range_a1`; return the number of updated cells."""
