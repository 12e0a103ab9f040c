import asyncio, dataclasses, os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    Progress, BarColumn, TextColumn, TimeElapsedColumn, MofNCompleteColumn, SpinnerColumn
)

from ..adapters.manifest_jsonl import JSONLManifest
from ..adapters.rpc_httpx import HttpxSolanaRPC
from ..adapters.sheets_httpx import GoogleSheetsClient
from ..adapters.snapshot_json import JSONSnapshotSink
from ..application.upload import upload_snapshot
from ..application.use_cases import scan_and_snapshot
from ..application.utils import _now_ts_str
from ..config import ScanConfig, UploadConfig
from ..domain.classification import FILTER_CHOICES, Category, parse_filter_kind
from ..domain.models import ChunkRec, ScanResult, SnapshotPaths
from ..domain.value_types import ProgramId
from ..errors import ConfigError, LedgerScanError
from ..logging_config import configure_logging

app = typer.Typer(help="ledgerscan: inventory ApplicationAccount records owned by a Solana program.")
console = Console(soft_wrap=True)

_BREAKDOWN_LABELS = {
    Category.INITIALIZED: "Just initialized",
    Category.TS_ONLY: "TS only",
    Category.RUST_ONLY: "Rust only",
    Category.COMPLETED: "Completed both",
}


def _fail(e: LedgerScanError) -> typer.Exit:
    console.print(f"[bold red]error[/]: {escape(str(e))}")
    return typer.Exit(code=2 if isinstance(e, ConfigError) else 1)


def _print_summary(result: ScanResult, paths: SnapshotPaths) -> None:
    s = result.summary
    console.print("\n[bold]Summary[/]")
    console.print(f" Total accounts enumerated: {s.total_addresses}")
    console.print(f" Application accounts found: {s.matched}")
    console.print(f" Non-application accounts skipped: {s.non_matching}")
    console.print(f" Empty accounts skipped: {s.empty}")
    console.print(f" Filtered accounts ({result.filter_kind.value}): {s.filtered}")
    if s.decode_failed:
        console.print(f" [bold red]Decode failures: {s.decode_failed}[/] (layout drift? see log)")
    if s.failed_chunks:
        console.print(f" [bold yellow]Failed chunks: {s.failed_chunks}[/] "
                      f"({s.failed_addresses} addresses not fetched)")
    console.print("\n[bold]Files saved[/]")
    console.print(f" Filtered data: {paths.filtered_path}")
    console.print(f" All application data: {paths.all_path}")
    console.print("\n[bold]Application account breakdown[/]")
    for cat, label in _BREAKDOWN_LABELS.items():
        console.print(f" {label}: {s.breakdown[cat]}")


@app.command()
def scan(
    filter_kind: str = typer.Argument("all", help=f"One of: {', '.join(FILTER_CHOICES)}"),
    chunk_size: Optional[int] = typer.Option(None, help="Accounts per getMultipleAccounts call (1 = one at a time)"),
    output_dir: Optional[Path] = typer.Option(None, help="Snapshot directory [env OUTPUT_DIR]"),
    rpc_url: Optional[str] = typer.Option(None, help="Solana RPC endpoint [env RPC_URL]"),
    manifest: bool = typer.Option(True, "--manifest/--no-manifest", help="Write a per-run JSONL chunk manifest"),
):
    """Fetch, decode and classify every ApplicationAccount, then write snapshots."""
    load_dotenv()
    configure_logging()
    try:
        kind = parse_filter_kind(filter_kind)
        cfg = ScanConfig.from_env()
        overrides = {k: v for k, v in
                     {"chunk_size": chunk_size, "output_dir": output_dir, "rpc_url": rpc_url}.items()
                     if v is not None}
        cfg = dataclasses.replace(cfg, **overrides)
    except LedgerScanError as e:
        raise _fail(e)

    console.print(f"Filter type: [bold]{kind.value}[/]")
    run_id = _now_ts_str()

    async def main():
        rpc = HttpxSolanaRPC(cfg.rpc_url)
        sink = JSONSnapshotSink(str(cfg.output_dir), run_id)
        man = JSONLManifest(os.path.join(str(cfg.output_dir), "manifests", f"run_{run_id}.jsonl")) if manifest else None
        progress = Progress(SpinnerColumn(),
                            TextColumn("[bold]fetching accounts[/]"),
                            BarColumn(),
                            MofNCompleteColumn(),
                            TextColumn("•"),
                            TimeElapsedColumn(),
                            TextColumn(" • {task.description}"),
                            console=console,
                            transient=False,
                            expand=True,
                            )
        task = progress.add_task(description="enumerating", total=None)

        def on_chunk(rec: ChunkRec, total: int) -> None:
            progress.update(task, total=total)
            if rec.status == "failed":
                progress.console.print(f"[red]chunk {rec.index + 1}/{total} failed[/]: {escape(rec.error or '')}")
            desc = f"chunk {rec.index + 1}/{total} ({rec.size} accounts, {rec.matched} matched)"
            progress.update(task, advance=1, description=desc)

        try:
            with progress:
                return await scan_and_snapshot(
                    rpc=rpc, sink=sink, manifest=man,
                    program_id=ProgramId(cfg.program_id), filter_kind=kind,
                    chunk_size=cfg.chunk_size, commitment=cfg.commitment,
                    on_chunk=on_chunk,
                )
        finally:
            await rpc.aclose()

    try:
        result, paths = asyncio.run(main())
    except LedgerScanError as e:
        raise _fail(e)
    _print_summary(result, paths)


@app.command()
def upload(
    file: Optional[Path] = typer.Option(None, "--file", help="Snapshot to upload (default: latest in output dir)"),
    output_dir: Optional[Path] = typer.Option(None, help="Snapshot directory [env OUTPUT_DIR]"),
    sheet_range: Optional[str] = typer.Option(None, "--range", help="A1 start range [env SHEET_RANGE]"),
):
    """Upload one snapshot file to the configured Google spreadsheet."""
    load_dotenv()
    configure_logging()
    try:
        cfg = UploadConfig.from_env()
    except LedgerScanError as e:
        raise _fail(e)

    async def main():
        sheets = GoogleSheetsClient.from_service_account_file(str(cfg.credentials_file))
        try:
            return await upload_snapshot(
                sheets=sheets,
                spreadsheet_id=cfg.spreadsheet_id,
                range_a1=sheet_range or cfg.sheet_range,
                snapshot_path=str(file) if file else None,
                out_dir=str(output_dir or cfg.output_dir),
            )
        finally:
            await sheets.aclose()

    try:
        path, updated = asyncio.run(main())
    except LedgerScanError as e:
        raise _fail(e)
    console.print(f"Read data from: {path}")
    console.print(f"Updated {updated} cells in the spreadsheet")


if __name__ == "__main__":
    app()
