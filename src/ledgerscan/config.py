"""Runtime configuration for the scan and upload entry points.

All environment parsing lives here; the pipeline only sees the typed
config objects built once at startup.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .domain.value_types import Commitment
from .errors import ConfigError

DEVNET_RPC_URL = "https://api.devnet.solana.com"
DEFAULT_CHUNK_SIZE = 90
# getMultipleAccounts rejects more than 100 keys per call
MAX_CHUNK_SIZE = 100
DEFAULT_OUTPUT_DIR = "./output"
DEFAULT_SHEET_RANGE = "Sheet1!A1"

_COMMITMENTS: tuple[Commitment, ...] = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class ScanConfig:
    """Validated settings for one scan run.

    Attributes:
        program_id: Base58 id of the program owning the accounts.
        rpc_url: Solana JSON-RPC endpoint.
        commitment: Commitment level sent with every call.
        chunk_size: Addresses per getMultipleAccounts call.
        output_dir: Directory receiving snapshot files.
    """

    program_id: str
    rpc_url: str = DEVNET_RPC_URL
    commitment: Commitment = "confirmed"
    chunk_size: int = DEFAULT_CHUNK_SIZE
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)

    def __post_init__(self) -> None:
        if not self.program_id:
            raise ConfigError("PROGRAM_ID is not set")
        validate_chunk_size(self.chunk_size)
        if self.commitment not in _COMMITMENTS:
            raise ConfigError(
                f"Invalid commitment '{self.commitment}': expected one of {', '.join(_COMMITMENTS)}"
            )

    @classmethod
    def from_env(cls) -> "ScanConfig":
        """Build config from process environment variables.

        Raises:
            ConfigError: If PROGRAM_ID is missing or a value is invalid.
        """
        return cls(
            program_id=os.getenv("PROGRAM_ID", "").strip(),
            rpc_url=os.getenv("RPC_URL", DEVNET_RPC_URL),
            commitment=os.getenv("COMMITMENT", "confirmed"),  # type: ignore[arg-type]
            chunk_size=_parse_int("CHUNK_SIZE", os.getenv("CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))),
            output_dir=Path(os.getenv("OUTPUT_DIR", DEFAULT_OUTPUT_DIR)).expanduser(),
        )


@dataclass(frozen=True)
class UploadConfig:
    """Validated settings for the spreadsheet upload.

    Attributes:
        spreadsheet_id: Target Google spreadsheet id.
        credentials_file: Service-account JSON key path.
        sheet_range: A1 range the rows are written from.
        output_dir: Directory holding snapshot files.
    """

    spreadsheet_id: str
    credentials_file: Path
    sheet_range: str = DEFAULT_SHEET_RANGE
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)

    @classmethod
    def from_env(cls) -> "UploadConfig":
        spreadsheet_id = os.getenv("SPREADSHEET_ID", "").strip()
        credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "").strip()
        if not spreadsheet_id:
            raise ConfigError("SPREADSHEET_ID is not set")
        if not credentials:
            raise ConfigError("GOOGLE_APPLICATION_CREDENTIALS is not set")
        return cls(
            spreadsheet_id=spreadsheet_id,
            credentials_file=Path(credentials).expanduser(),
            sheet_range=os.getenv("SHEET_RANGE", DEFAULT_SHEET_RANGE),
            output_dir=Path(os.getenv("OUTPUT_DIR", DEFAULT_OUTPUT_DIR)).expanduser(),
        )


def validate_chunk_size(chunk_size: int) -> int:
    if chunk_size < 1 or chunk_size > MAX_CHUNK_SIZE:
        raise ConfigError(f"chunk size must be within 1..{MAX_CHUNK_SIZE}, got {chunk_size}")
    return chunk_size


def _parse_int(name: str, raw_value: str) -> int:
    try:
        return int(raw_value)
    except ValueError as error:
        raise ConfigError(f"Invalid {name} value: expected integer, got '{raw_value}'") from error
