from __future__ import annotations

import hashlib

from ..errors import AccountDecodeError
from .models import ApplicationAccount
from .value_types import Address

# Anchor discriminator for ApplicationAccount: sha256("account:ApplicationAccount")[:8]
APPLICATION_ACCOUNT_DISCRIMINATOR = bytes([222, 181, 17, 200, 212, 149, 64, 88])
DISCRIMINATOR_LEN = 8

# upper bound enforced by the program on the github handle
MAX_GITHUB_LEN = 50

# ---------- discriminator ------------------------------------------------------

def account_discriminator(name: str) -> bytes:
    """Anchor account discriminator: first 8 bytes of sha256("account:<Name>")."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_LEN]


def matches_discriminator(data: bytes | None,
                          discriminator: bytes = APPLICATION_ACCOUNT_DISCRIMINATOR) -> bool:
    """True only when the first 8 bytes equal `discriminator`. Never raises."""
    if data is None or len(data) < DISCRIMINATOR_LEN:
        return False
    return bytes(data[:DISCRIMINATOR_LEN]) == discriminator


def strip_discriminator(data: bytes) -> bytes:
    return bytes(data[DISCRIMINATOR_LEN:])

# ---------- borsh primitives (cursor-free, offset based) -----------------------

def _need(buf: bytes, off: int, n: int, what: str) -> None:
    if off + n > len(buf):
        raise AccountDecodeError(
            f"payload too short for {what}: need {off + n} bytes, have {len(buf)}"
        )

def _u8(buf: bytes, off: int, what: str) -> int:
    _need(buf, off, 1, what)
    return buf[off]

def _bool(buf: bytes, off: int, what: str) -> bool:
    v = _u8(buf, off, what)
    if v not in (0, 1):
        raise AccountDecodeError(f"invalid bool byte {v} for {what}")
    return v == 1

def _u32_le(buf: bytes, off: int, what: str) -> int:
    _need(buf, off, 4, what)
    return int.from_bytes(buf[off:off + 4], "little")

def _string(buf: bytes, off: int, what: str) -> tuple[str, int]:
    n = _u32_le(buf, off, f"{what} length")
    off += 4
    if off + n > len(buf):
        raise AccountDecodeError(
            f"{what} declares {n} bytes but only {len(buf) - off} remain"
        )
    try:
        return buf[off:off + n].decode("utf-8"), off + n
    except UnicodeDecodeError as e:
        raise AccountDecodeError(f"{what} is not valid UTF-8") from e

# ---------------------------- public API --------------------------------------

def decode_application_account(address: Address, payload: bytes) -> ApplicationAccount:
    """
    Decode a discriminator-free ApplicationAccount payload.
    Layout: u8 bump | bool pre_req_ts | bool pre_req_rs | string github.
    Trailing bytes (account padding) are ignored. Raises AccountDecodeError,
    never returns a partial record.
    """
    buf = bytes(payload)
    bump = _u8(buf, 0, "bump")
    pre_req_ts = _bool(buf, 1, "pre_req_ts")
    pre_req_rs = _bool(buf, 2, "pre_req_rs")
    github, _ = _string(buf, 3, "github")
    return ApplicationAccount(
        address=address,
        bump=bump,
        pre_req_ts=pre_req_ts,
        pre_req_rs=pre_req_rs,
        github=github,
    )


def encode_application_account(acc: ApplicationAccount) -> bytes:
    """Inverse of decode_application_account (payload only, no discriminator)."""
    if not 0 <= acc.bump <= 0xFF:
        raise ValueError(f"bump out of u8 range: {acc.bump}")
    gh = acc.github.encode("utf-8")
    return (
        bytes([acc.bump, int(acc.pre_req_ts), int(acc.pre_req_rs)])
        + len(gh).to_bytes(4, "little")
        + gh
    )


def encode_account_data(acc: ApplicationAccount) -> bytes:
    """Full on-chain account bytes: discriminator + payload."""
    return APPLICATION_ACCOUNT_DISCRIMINATOR + encode_application_account(acc)
