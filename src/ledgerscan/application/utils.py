from __future__ import annotations
from datetime import datetime, timezone


def _now_ts_str(now: datetime | None = None) -> str:
    """UTC ISO-8601 timestamp made filesystem safe (':' and '.' -> '-'); sorts chronologically."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")
