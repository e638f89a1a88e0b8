"""
Time helpers shared by the models and services.

Persisted timestamps are epoch milliseconds (the on-device format);
everything in memory is a timezone-aware UTC datetime.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never mix kinds."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_epoch_ms(moment: datetime) -> int:
    return int(ensure_utc(moment).timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
