"""
Timestamp helpers.

SQLite hands back naive datetimes for DateTime columns; everything stored by
the app is UTC, so naive values are treated as UTC before comparison.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """
    Normalize a datetime to an aware UTC value.

    Args:
        dt: Datetime from the database or user input, or None

    Returns:
        Aware UTC datetime, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_past(dt: datetime | None, now: datetime | None = None) -> bool:
    """Return True if dt is set and strictly before now."""
    moment = as_utc(dt)
    if moment is None:
        return False
    return moment < (now or utc_now())


def minutes_from_now(minutes: int) -> datetime:
    """Return an aware UTC datetime `minutes` in the future."""
    return utc_now() + timedelta(minutes=minutes)
