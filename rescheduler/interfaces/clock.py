"""
Clock interface.

Services never read the system time directly; they receive a clock and ask
for "now" in the user's timezone so every date/time comparison happens in
the same local frame.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from zoneinfo import ZoneInfo


class IClock(ABC):
    """Source of the current instant."""

    @abstractmethod
    def now_utc(self) -> datetime:
        """Current instant as an aware UTC datetime."""
        pass

    def now(self, user_timezone: str) -> datetime:
        """Current wall-clock time in the given IANA timezone."""
        return self.now_utc().astimezone(ZoneInfo(user_timezone))

    def today(self, user_timezone: str) -> date:
        """Today's local date in the given timezone."""
        return self.now(user_timezone).date()

    def local_minutes(self, user_timezone: str) -> int:
        """Local minutes since midnight."""
        local = self.now(user_timezone)
        return local.hour * 60 + local.minute
