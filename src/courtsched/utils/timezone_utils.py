"""Timezone utilities for court-local wall-clock time."""

from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

class TimezoneManager:
    """Conversions between aware datetimes and one court's local time.

    Reservation windows are wall-clock times on a calendar date, so every
    comparison with "now" goes through the court's IANA zone.
    """

    def __init__(self, local_timezone: str = "America/Mexico_City"):
        """Initialize timezone manager.

        Args:
            local_timezone: IANA name of the court's zone

        Raises:
            ValueError: If the timezone is unknown
        """
        try:
            self.local_tz = ZoneInfo(local_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Invalid timezone {local_timezone}: {e}") from e

    def now(self) -> datetime:
        """Current time in the local zone."""
        return datetime.now(self.local_tz)

    def to_local(self, dt: datetime) -> datetime:
        """Express ``dt`` in the local zone; naive values are taken as local already."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=self.local_tz)
        return dt.astimezone(self.local_tz)

    def combine(self, day: date, at: time) -> datetime:
        """Aware local datetime for a wall-clock time on a calendar day."""
        return datetime.combine(day, at, tzinfo=self.local_tz)

    def local_date(self, dt: datetime) -> date:
        return self.to_local(dt).date()

    @staticmethod
    def is_valid_timezone(timezone: str) -> bool:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return False
        return True
