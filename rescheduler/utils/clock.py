"""
Clock implementations.
"""

from datetime import datetime

from rescheduler.interfaces.clock import IClock
from rescheduler.utils.datetime_utils import ensure_utc, now_utc


class SystemClock(IClock):
    """Real time."""

    def now_utc(self) -> datetime:
        return now_utc()


class FixedClock(IClock):
    """A clock frozen at one instant. Naive instants are treated as UTC."""

    def __init__(self, instant: datetime):
        self._instant = ensure_utc(instant)

    def now_utc(self) -> datetime:
        return self._instant
