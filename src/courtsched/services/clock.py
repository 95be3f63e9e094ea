"""Clock implementations."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from courtsched.utils.timezone_utils import TimezoneManager


class SystemClock:
    """Wall clock in a fixed time zone."""

    def __init__(self, timezone: str = "America/Mexico_City"):
        self._tz_manager = TimezoneManager(timezone)

    def now(self) -> datetime:
        return self._tz_manager.now()


class FixedClock:
    """Manually driven clock for deterministic time-dependent guards."""

    def __init__(self, now: datetime, timezone: str | None = None):
        if now.tzinfo is None:
            now = now.replace(tzinfo=ZoneInfo(timezone or "UTC"))
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        if now.tzinfo is None:
            now = now.replace(tzinfo=self._now.tzinfo)
        self._now = now

    def advance(self, **delta: float) -> datetime:
        """Move forward by ``timedelta(**delta)`` and return the new time."""
        self._now = self._now + timedelta(**delta)
        return self._now
