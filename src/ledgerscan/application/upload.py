from __future__ import annotations
import os
from typing import Sequence

from ..adapters.snapshot_json import read_snapshot
from ..domain.models import ApplicationAccount
from ..errors import SnapshotError
from ..logging_config import get_logger
from ..ports.sheets import Cell, SheetsClient

_LOGGER = get_logger(__name__)


def latest_snapshot(out_dir: str) -> str:
    """Lexicographically latest *.json in `out_dir` (timestamps sort by name)."""
    if not os.path.isdir(out_dir):
        raise SnapshotError(f"Output directory {out_dir!r} does not exist. Run `ledgerscan scan` first.")
    files = sorted(f for f in os.listdir(out_dir) if f.endswith(".json"))
    if not files:
        raise SnapshotError(f"No JSON files found in {out_dir!r}. Run `ledgerscan scan` first.")
    return os.path.join(out_dir, files[-1])


def to_rows(accounts: Sequence[ApplicationAccount]) -> list[list[Cell]]:
    return [
        [a.address, a.bump, "Yes" if a.pre_req_ts else "No", "Yes" if a.pre_req_rs else "No", a.github]
        for a in accounts
    ]


async def upload_snapshot(
    *,
    sheets: SheetsClient,
    spreadsheet_id: str,
    range_a1: str,
    snapshot_path: str | None = None,
    out_dir: str | None = None,
) -> tuple[str, int]:
    """
    Push one snapshot to the spreadsheet in a single range update.
    An explicit `snapshot_path` wins; otherwise the latest file in `out_dir`.
    Returns (path used, updated cells). UploadError propagates unretried.
    """
    if snapshot_path is None:
        if out_dir is None:
            raise SnapshotError("pass either snapshot_path or out_dir")
        snapshot_path = latest_snapshot(out_dir)
    accounts = read_snapshot(snapshot_path)
    _LOGGER.info("snapshot_loaded", path=snapshot_path, accounts=len(accounts))
    updated = await sheets.update_values(spreadsheet_id, range_a1, to_rows(accounts))
    _LOGGER.info("sheet_updated", spreadsheet_id=spreadsheet_id, range=range_a1, updated_cells=updated)
    return snapshot_path, updated
