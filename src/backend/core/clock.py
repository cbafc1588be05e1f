"""
Server-side timestamps.

Record timestamps are assigned here rather than by the database so that
``created_at`` is strictly increasing within a process, even when two writes
land in the same clock tick. Newest-first ordering depends on it.
"""

import threading
from datetime import datetime, timedelta, timezone

_lock = threading.Lock()
_last: datetime | None = None


def utc_now() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


def monotonic_utc_now() -> datetime:
    """Current UTC time, nudged forward so it never repeats or goes back."""
    global _last
    with _lock:
        now = utc_now()
        if _last is not None and now <= _last:
            now = _last + timedelta(microseconds=1)
        _last = now
        return now


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
