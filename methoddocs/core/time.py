"""
Unified clock helpers

Internal timestamps are always aware UTC datetimes. On the wire they are
ISO 8601 strings with a 'Z' suffix.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones to UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime as ISO 8601 UTC with a 'Z' suffix

    Example:
        >>> iso_z(datetime(2026, 1, 31, 12, 34, 56, 789012, tzinfo=timezone.utc))
        '2026-01-31T12:34:56.789012Z'
    """
    if dt is None:
        return None
    return ensure_utc(dt).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def parse_iso(value: str) -> datetime:
    """Parse a timestamp written by iso_z() (or any ISO 8601 string)"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """
    Current time, bumped past `previous` when the clock has not advanced

    Mutation timestamps must be strictly increasing per record.
    """
    now = utc_now()
    if previous is not None and now <= ensure_utc(previous):
        return ensure_utc(previous) + timedelta(microseconds=1)
    return now
