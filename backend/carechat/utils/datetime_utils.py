"""
Datetime utilities.

The store stamps every write with now_utc(); clients never supply timestamps.
"""

from datetime import datetime, timedelta, timezone

UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime as a naive value.

    SQLite DateTime columns drop tzinfo, so values are stored and compared naive.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def advance(previous: datetime | None, now: datetime | None = None) -> datetime:
    """Return a timestamp strictly later than previous (or now when later)."""
    current = now or now_utc()
    if previous is None or current > previous:
        return current
    return previous + timedelta(microseconds=1)
