"""
Datetime utilities.

Timestamps are persisted as naive UTC; the cash-session day is computed in the
restaurant's local timezone.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """
    Get current UTC time as a naive datetime (the database columns carry no tzinfo).
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_today(tz_name: str, now: datetime | None = None) -> date:
    """Return the calendar day in `tz_name` for the given naive UTC instant."""
    instant = (now or utcnow()).replace(tzinfo=timezone.utc)
    return instant.astimezone(ZoneInfo(tz_name)).date()


def elapsed_seconds(start: datetime | None, now: datetime | None = None) -> int:
    if start is None:
        return 0
    delta = (now or utcnow()) - start
    return max(0, int(delta.total_seconds()))


def isoformat(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None
