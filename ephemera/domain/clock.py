"""
Clock helpers

All timestamps in the domain are naive datetimes expressed in UTC.
Services take a ``Clock`` callable so tests can drive time explicitly.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_epoch(moment: datetime) -> float:
    """Convert a naive UTC datetime to epoch seconds."""
    return moment.replace(tzinfo=timezone.utc).timestamp()


def to_naive_utc(moment: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)
