from __future__ import annotations
from typing import NewType, Literal

Address   = NewType("Address", str)     # base58 public key
ProgramId = NewType("ProgramId", str)   # base58 program id
Status    = Literal["pending", "done", "failed"]
Commitment = Literal["processed", "confirmed", "finalized"]
