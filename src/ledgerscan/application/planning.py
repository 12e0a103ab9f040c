from __future__ import annotations
from typing import Sequence
from ..config import validate_chunk_size
from ..domain.models import AddressChunk
from ..domain.value_types import Address

def plan_chunks(addresses: Sequence[Address], chunk_size: int) -> list[AddressChunk]:
    """Consecutive chunks of at most `chunk_size`; ceil(N / chunk_size) of them."""
    validate_chunk_size(chunk_size)
    out: list[AddressChunk] = []
    for i, start in enumerate(range(0, len(addresses), chunk_size)):
        out.append(AddressChunk(index=i, addresses=tuple(addresses[start:start + chunk_size])))
    return out
