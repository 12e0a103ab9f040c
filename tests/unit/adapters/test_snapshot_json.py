"""Unit tests for JSON snapshot files and the chunk manifest."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from ledger_fakes import make_account

from ledgerscan.adapters.manifest_jsonl import JSONLManifest
from ledgerscan.adapters.snapshot_json import JSONSnapshotSink, read_snapshot
from ledgerscan.application.utils import _now_ts_str
from ledgerscan.domain.classification import FilterKind
from ledgerscan.domain.models import ChunkRec
from ledgerscan.errors import SnapshotError


def test_sink_writes_filtered_and_all_files(tmp_path: Path) -> None:
    """Both lists land in files named by filter kind and run id, in the wire format."""
    out_dir = tmp_path / "output"
    done = make_account("C", bump=1, ts=True, rs=True, github="alice")
    fresh = make_account("I", bump=2)
    sink = JSONSnapshotSink(str(out_dir), run_id="2026-10-19T10-00-00-000Z")

    paths = sink.write(FilterKind.COMPLETED, [done, fresh], [done])

    assert Path(paths.filtered_path).name == "accounts_completed_2026-10-19T10-00-00-000Z.json"
    assert Path(paths.all_path).name == "accounts_all_students_2026-10-19T10-00-00-000Z.json"
    assert json.loads(Path(paths.filtered_path).read_text()) == [{
        "accountAddress": "C", "bump": 1, "pre_req_ts": True, "pre_req_rs": True, "github": "alice",
    }]
    assert read_snapshot(paths.all_path) == [done, fresh]
    assert sorted(p.name for p in out_dir.iterdir()) == [
        Path(paths.all_path).name, Path(paths.filtered_path).name,
    ]


def test_sink_never_overwrites_existing_snapshot(tmp_path: Path) -> None:
    sink = JSONSnapshotSink(str(tmp_path), run_id="fixed")
    sink.write(FilterKind.ALL, [], [])

    with pytest.raises(SnapshotError, match="already exists"):
        sink.write(FilterKind.ALL, [make_account("X")], [])

    assert json.loads((tmp_path / "accounts_all_fixed.json").read_text()) == []


def test_run_ids_are_filesystem_safe_and_sortable() -> None:
    from datetime import datetime, timezone

    early = _now_ts_str(datetime(2026, 1, 2, 3, 4, 5, 6000, tzinfo=timezone.utc))
    late = _now_ts_str(datetime(2026, 1, 2, 3, 4, 5, 7000, tzinfo=timezone.utc))

    assert early == "2026-01-02T03-04-05-006Z"
    assert ":" not in late and "." not in late
    assert early < late


def test_read_snapshot_rejects_non_array(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text('{"accountAddress": "A"}')

    with pytest.raises(SnapshotError):
        read_snapshot(str(path))


def test_manifest_appends_one_line_per_chunk(tmp_path: Path) -> None:
    manifest = JSONLManifest(str(tmp_path / "manifests" / "run.jsonl"))
    first = ChunkRec(index=0, size=90, status="done", matched=3, updated_at=1.0)
    second = ChunkRec(index=1, size=10, status="failed", error="RpcError: boom", updated_at=2.0)

    asyncio.run(manifest.append(first))
    asyncio.run(manifest.append(second))

    assert manifest.records() == [first, second]
