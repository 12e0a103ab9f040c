from __future__ import annotations
from enum import Enum

from ..errors import ConfigError


class Category(str, Enum):
    """Prerequisite progress of an application account."""
    INITIALIZED = "initialized"   # neither track complete
    TS_ONLY     = "ts_only"
    RUST_ONLY   = "rust_only"
    COMPLETED   = "completed"


class FilterKind(str, Enum):
    ALL         = "all"
    INITIALIZED = "initialized"
    TS_ONLY     = "ts_only"
    RUST_ONLY   = "rust_only"
    COMPLETED   = "completed"


_CATEGORY_BY_FLAGS: dict[tuple[bool, bool], Category] = {
    (False, False): Category.INITIALIZED,
    (True,  False): Category.TS_ONLY,
    (False, True):  Category.RUST_ONLY,
    (True,  True):  Category.COMPLETED,
}

FILTER_CHOICES: tuple[str, ...] = tuple(k.value for k in FilterKind)


def classify(pre_req_ts: bool, pre_req_rs: bool) -> Category:
    return _CATEGORY_BY_FLAGS[(bool(pre_req_ts), bool(pre_req_rs))]


def parse_filter_kind(raw: str | FilterKind) -> FilterKind:
    """Resolve a CLI selector; unknown values are a configuration error."""
    if isinstance(raw, FilterKind):
        return raw
    try:
        return FilterKind(raw.strip().lower())
    except ValueError as e:
        raise ConfigError(
            f"Invalid filter type '{raw}'. Use: {', '.join(FILTER_CHOICES)}"
        ) from e


def matches_filter(kind: FilterKind, category: Category) -> bool:
    if kind is FilterKind.ALL:
        return True
    return kind.value == category.value


def empty_breakdown() -> dict[Category, int]:
    return {c: 0 for c in Category}
