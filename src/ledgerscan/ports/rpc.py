# ledgerscan/ports/rpc.py
from __future__ import annotations

from typing import Protocol, Sequence
from ..domain.value_types import Address, Commitment, ProgramId


class LedgerClient(Protocol):
    """Port defining the read-only contract for a Solana JSON-RPC client."""

    async def get_program_account_addresses(
        self,
        program_id: ProgramId,
        commitment: Commitment = "confirmed",
    ) -> list[Address]:
        """Return every account address owned by `program_id`, without payload bytes."""

    async def get_multiple_accounts(
        self,
        addresses: Sequence[Address],
        commitment: Commitment = "confirmed",
    ) -> list[bytes | None]:
        """Return one slot per input address: raw account data, or None if absent."""

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
