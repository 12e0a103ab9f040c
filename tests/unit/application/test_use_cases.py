"""Unit tests for the scan orchestrator."""

from __future__ import annotations

import asyncio

import pytest
from ledger_fakes import FakeLedger, FakeManifest, FakeSink, account_bytes, foreign_bytes, make_account

from ledgerscan.application.use_cases import scan_accounts, scan_and_snapshot
from ledgerscan.domain.classification import Category, FilterKind
from ledgerscan.domain.decoding import APPLICATION_ACCOUNT_DISCRIMINATOR
from ledgerscan.domain.value_types import ProgramId
from ledgerscan.errors import ConfigError, RpcError

PROGRAM = ProgramId("Prog1111111111111111111111111111111111111111")


def _scenario_ledger() -> FakeLedger:
    return FakeLedger({
        "A": foreign_bytes(),
        "B": None,
        "C": account_bytes("C", bump=1, ts=True, rs=False, github="alice"),
    })


def _scan(ledger: FakeLedger, filter_kind: str = "all", chunk_size: int = 2, **kwargs):
    return asyncio.run(scan_accounts(
        rpc=ledger, program_id=PROGRAM, filter_kind=filter_kind, chunk_size=chunk_size, **kwargs
    ))


def test_scan_skips_absent_and_foreign_accounts() -> None:
    """A fails the tag, B is absent, C decodes; only C is matched."""
    ledger = _scenario_ledger()

    result = _scan(ledger, "ts_only")

    expected = make_account("C", bump=1, ts=True, rs=False, github="alice")
    assert ledger.batches == [["A", "B"], ["C"]]
    assert result.summary.non_matching == 1
    assert result.summary.matched == 1
    assert result.summary.empty == 1
    assert result.all_matched == (expected,)
    assert result.filtered == (expected,)


def test_scan_with_rust_only_filter_has_empty_filtered_set() -> None:
    result = _scan(_scenario_ledger(), "rust_only")

    assert len(result.all_matched) == 1
    assert result.filtered == ()
    assert result.summary.filtered == 0


def test_scan_excludes_account_whose_label_overruns_buffer() -> None:
    """A tag-matched payload with a bad length prefix is counted, not decoded."""
    bad = APPLICATION_ACCOUNT_DISCRIMINATOR + bytes([1, 1, 0]) + (999).to_bytes(4, "little") + b"al"
    ledger = FakeLedger({"bad": bad, "ok": account_bytes("ok", github="bob")})

    result = _scan(ledger)

    assert result.summary.decode_failed == 1
    assert [a.address for a in result.all_matched] == ["ok"]
    assert [a.address for a in result.filtered] == ["ok"]


def test_scan_continues_after_failed_chunk() -> None:
    """Addresses in a failed chunk contribute no records but later chunks are counted."""
    accounts = {f"k{i}": account_bytes(f"k{i}", ts=True, rs=True) for i in range(5)}
    ledger = FakeLedger(accounts, failing=["k1"])
    manifest = FakeManifest()

    result = _scan(ledger, "completed", chunk_size=2, manifest=manifest)

    assert [a.address for a in result.all_matched] == ["k2", "k3", "k4"]
    assert result.summary.failed_chunks == 1
    assert result.summary.failed_addresses == 2
    assert [r.status for r in manifest.records] == ["failed", "done", "done"]
    assert manifest.records[1].matched == 2


def test_scan_breakdown_counts_every_category() -> None:
    ledger = FakeLedger({
        "i": account_bytes("i"),
        "t": account_bytes("t", ts=True),
        "r": account_bytes("r", rs=True),
        "c1": account_bytes("c1", ts=True, rs=True),
        "c2": account_bytes("c2", ts=True, rs=True),
    })

    result = _scan(ledger, "initialized", chunk_size=1)

    assert len(ledger.batches) == 5
    assert result.summary.breakdown == {
        Category.INITIALIZED: 1,
        Category.TS_ONLY: 1,
        Category.RUST_ONLY: 1,
        Category.COMPLETED: 2,
    }
    assert [a.address for a in result.filtered] == ["i"]


def test_narrow_filters_partition_the_matched_set() -> None:
    """Union of the four single-category filtered sets equals the `all` set."""
    ledger_accounts = {
        "i": account_bytes("i"),
        "t": account_bytes("t", ts=True),
        "r": account_bytes("r", rs=True),
        "c": account_bytes("c", ts=True, rs=True),
    }
    everything = set(_scan(FakeLedger(ledger_accounts), "all").filtered)
    parts = [set(_scan(FakeLedger(ledger_accounts), k.value).filtered)
             for k in FilterKind if k is not FilterKind.ALL]

    assert set().union(*parts) == everything
    assert sum(len(p) for p in parts) == len(everything)


def test_invalid_filter_fails_before_any_remote_call() -> None:
    ledger = _scenario_ledger()

    with pytest.raises(ConfigError):
        _scan(ledger, "bogus")

    assert ledger.enumerate_calls == 0
    assert ledger.batches == []


def test_enumeration_failure_aborts_run() -> None:
    ledger = FakeLedger({}, enumerate_error=TimeoutError("rpc down"))

    with pytest.raises(RpcError, match="rpc down"):
        _scan(ledger)


def test_on_chunk_callback_reports_each_settled_chunk() -> None:
    seen: list[tuple[int, int, str]] = []

    _scan(_scenario_ledger(), on_chunk=lambda rec, total: seen.append((rec.index, total, rec.status)))

    assert seen == [(0, 2, "done"), (1, 2, "done")]


def test_scan_and_snapshot_hands_both_lists_to_sink() -> None:
    sink = FakeSink()

    result, paths = asyncio.run(scan_and_snapshot(
        rpc=_scenario_ledger(), sink=sink, program_id=PROGRAM,
        filter_kind="rust_only", chunk_size=90,
    ))

    assert paths.run_id == "run"
    kind, all_matched, filtered = sink.calls[0]
    assert kind is FilterKind.RUST_ONLY
    assert all_matched == list(result.all_matched)
    assert filtered == []
