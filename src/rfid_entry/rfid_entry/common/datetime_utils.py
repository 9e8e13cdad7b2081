from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional


def to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision; entry timestamps are stored as DATETIME(3)."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def now_utc() -> datetime:
    """Current UTC time as a naive datetime (the representation stored in MySQL).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return to_millis(datetime.now(timezone.utc).replace(tzinfo=None))


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a naive UTC datetime as ISO-8601 with a Z suffix."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


def elapsed_seconds(since: datetime, now: datetime) -> int:
    return max(0, math.ceil((now - since).total_seconds()))
