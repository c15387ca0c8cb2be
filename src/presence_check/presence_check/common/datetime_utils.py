from __future__ import annotations

from datetime import datetime, timedelta


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def from_millis(duration_ms: int) -> timedelta:
    return timedelta(milliseconds=int(duration_ms))
