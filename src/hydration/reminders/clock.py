"""
User-local clock.

The reminder core never reads system time itself: every "now" comes from a
clock object with a `now(user_id) -> datetime` method returning a naive
datetime in the user's own timezone. Tests substitute a fixed clock.
"""
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo


class SystemClock:
    """Wall clock converted into each user's timezone."""

    def __init__(self, timezone_for: Callable[[int], Optional[str]], default_timezone: str = "UTC"):
        """
        Args:
            timezone_for: callable mapping user_id -> IANA zone name (or None).
            default_timezone: zone used when the user has none on file.
        """
        self.timezone_for = timezone_for
        self.default_timezone = default_timezone

    def now(self, user_id: int) -> datetime:
        tz = ZoneInfo(self.timezone_for(user_id) or self.default_timezone)
        return datetime.now(tz).replace(tzinfo=None, microsecond=0)
