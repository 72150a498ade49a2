"""Time units accepted by timed inserts."""

from datetime import timedelta
from enum import Enum


class TimeUnit(Enum):
    """Granularity of a TTL ``duration``.

    Each member's value is the number of seconds in one unit.
    """

    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    def to_seconds(self, duration: int) -> float:
        """Convert ``duration`` of this unit to seconds."""
        return duration * self.value

    def to_timedelta(self, duration: int) -> timedelta:
        """Convert ``duration`` of this unit to a :class:`timedelta`.

        Sub-microsecond durations round down to zero, since
        ``timedelta`` has microsecond resolution.  Durations beyond the
        ``timedelta`` range saturate to ``timedelta.max`` (or ``min``).
        """
        try:
            if self is TimeUnit.NANOSECONDS:
                return timedelta(microseconds=duration // 1000)
            return timedelta(seconds=self.to_seconds(duration))
        except OverflowError:
            return timedelta.max if duration > 0 else timedelta.min
