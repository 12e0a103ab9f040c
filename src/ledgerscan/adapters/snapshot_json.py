from __future__ import annotations
import os, json
from typing import Any, Sequence

from ..application.utils import _now_ts_str
from ..domain.classification import FilterKind
from ..domain.models import ApplicationAccount, SnapshotPaths
from ..domain.value_types import Address
from ..errors import SnapshotError
from ..ports.storage import SnapshotSink

ALL_STUDENTS_KIND = "all_students"


def _to_row(acc: ApplicationAccount) -> dict[str, Any]:
    return {
        "accountAddress": acc.address,
        "bump": acc.bump,
        "pre_req_ts": acc.pre_req_ts,
        "pre_req_rs": acc.pre_req_rs,
        "github": acc.github,
    }


def _from_row(row: dict[str, Any]) -> ApplicationAccount:
    return ApplicationAccount(
        address=Address(str(row["accountAddress"])),
        bump=int(row["bump"]),
        pre_req_ts=bool(row["pre_req_ts"]),
        pre_req_rs=bool(row["pre_req_rs"]),
        github=str(row["github"]),
    )


def read_snapshot(path: str) -> list[ApplicationAccount]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        if not isinstance(rows, list):
            raise SnapshotError(f"{path}: expected a JSON array")
        return [_from_row(r) for r in rows]
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise SnapshotError(f"cannot read snapshot {path}: {e}") from e


class JSONSnapshotSink(SnapshotSink):
    """
    Writes accounts_<filter>_<run_id>.json and accounts_all_students_<run_id>.json.
    The run id is a sortable UTC timestamp; existing files are never replaced.
    """
    def __init__(self, out_dir: str, run_id: str | None = None) -> None:
        self.out_dir = out_dir
        self.run_id = run_id or _now_ts_str()

    def _path(self, kind: str) -> str:
        return os.path.join(self.out_dir, f"accounts_{kind}_{self.run_id}.json")

    def _write_new(self, path: str, accounts: Sequence[ApplicationAccount]) -> None:
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([_to_row(a) for a in accounts], f, indent=2)
            f.flush(); os.fsync(f.fileno())
        # link fails if the target exists, so a finished file is never clobbered
        try:
            os.link(tmp, path)
        except FileExistsError as e:
            raise SnapshotError(f"snapshot {path} already exists") from e
        finally:
            os.remove(tmp)

    def write(
        self,
        filter_kind: FilterKind,
        all_matched: Sequence[ApplicationAccount],
        filtered: Sequence[ApplicationAccount],
    ) -> SnapshotPaths:
        os.makedirs(self.out_dir, exist_ok=True)
        filtered_path = self._path(filter_kind.value)
        all_path = self._path(ALL_STUDENTS_KIND)
        self._write_new(filtered_path, filtered)
        self._write_new(all_path, all_matched)
        return SnapshotPaths(run_id=self.run_id, filtered_path=filtered_path, all_path=all_path)
