"""ledgerscan exception hierarchy.

Each layer raises its own error type so the CLI can decide what is fatal.
"""
from __future__ import annotations


class LedgerScanError(Exception):
    """Base exception for all ledgerscan failures."""


class ConfigError(LedgerScanError):
    """Raised for invalid runtime configuration or CLI selectors."""


class RpcError(LedgerScanError):
    """Raised when a Solana JSON-RPC call fails or returns an error object."""


class AccountDecodeError(LedgerScanError):
    """Raised when a discriminator-matched payload violates the account layout."""


class SnapshotError(LedgerScanError):
    """Raised for missing, unreadable or colliding snapshot files."""


class UploadError(LedgerScanError):
    """Raised when the spreadsheet service rejects an update."""
