"""
Registry clock.

Follows wall-clock time until pinned, after which it only moves when the
administrator sets or advances it.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from src.errors import InvalidArgumentError


class RegistryClock:
    """Current time source for time-based match status checks."""

    def __init__(self, pinned: Optional[int] = None):
        self._pinned = pinned

    def now(self) -> int:
        """Current time in epoch seconds."""
        if self._pinned is not None:
            return self._pinned
        return int(time.time())

    def pin(self, timestamp: int) -> int:
        if timestamp < 0:
            raise InvalidArgumentError("Timestamp must not be negative")
        self._pinned = int(timestamp)
        return self._pinned

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise InvalidArgumentError("Cannot move the clock backwards")
        return self.pin(self.now() + seconds)


def to_timestamp(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> int:
    """UTC calendar fields to epoch seconds."""
    try:
        moment = datetime(year, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError as e:
        raise InvalidArgumentError(f"Invalid date: {e}") from e
    return int(moment.timestamp())
