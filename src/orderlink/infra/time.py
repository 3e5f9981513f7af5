"""Time utilities for consistent timestamp handling."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def epoch_seconds(moment: datetime) -> int:
    """Whole seconds since the epoch, as carried in credential claims."""
    return int(moment.timestamp())


def from_epoch_seconds(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)
