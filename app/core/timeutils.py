"""
Clock helpers.

All persisted datetimes are naive UTC. Services take a `now` callable so
tests can freeze time.
"""

from datetime import datetime, timezone

import pytz


def utcnow() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise an aware or naive datetime to naive UTC (naive input is assumed UTC)."""
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.UTC).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)
