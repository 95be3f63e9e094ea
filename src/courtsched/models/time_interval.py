"""
Half-open time intervals within one court-local calendar day.

An end bound of ``00:00`` (written ``"24:00"``) is midnight at the end of
the day, minute 1440.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from functools import total_ordering

from courtsched.exceptions import InvalidIntervalError

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"


def parse_time(value: str | time, end_of_day: bool = False) -> time:
    """Parse ``"HH:MM"`` (or pass a ``time`` through).

    With ``end_of_day`` the value ``"24:00"`` is accepted and returned as
    ``00:00``, which interval ends read as minute 1440.
    """
    if isinstance(value, time):
        return value
    text = str(value).strip()
    if end_of_day and text == END_OF_DAY:
        return time(0, 0)
    try:
        hours, minutes = (int(part) for part in text.split(':'))
        return time(hours, minutes)
    except (TypeError, ValueError) as e:
        raise InvalidIntervalError(f"Invalid time {value!r}", {"value": str(value)}) from e

def format_minutes(minutes: int) -> str:
    """``HH:MM`` for minutes since midnight; 1440 renders as ``24:00``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"

def to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute

def end_minutes(value: time) -> int:
    """Minutes since midnight of an end bound; ``00:00`` closes the day."""
    return to_minutes(value) or MINUTES_PER_DAY

def from_minutes(minutes: int) -> time:
    """Wall-clock time for minutes since midnight; 1440 maps to ``00:00``."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise InvalidIntervalError(f"Minute offset {minutes} is outside a single day", {"minutes": minutes})
    return time((minutes // 60) % 24, minutes % 60)

def at_minutes(day: date, minutes: int, tz: tzinfo) -> datetime:
    """Aware datetime ``minutes`` of wall-clock time after midnight of ``day``."""
    return datetime.combine(day, time(0, 0), tzinfo=tz) + timedelta(minutes=minutes)


@total_ordering
@dataclass(frozen=True)
class TimeInterval:
    """Half-open ``[start, end)`` window of wall-clock time, ordered by start then end."""
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.start.second or self.start.microsecond or self.end.second or self.end.microsecond:
            raise InvalidIntervalError(
                "Interval bounds must be whole minutes",
                {"start": str(self.start), "end": str(self.end)}
            )
        if self.start_minutes >= self.end_minutes:
            raise InvalidIntervalError(
                f"Interval start {self.start_label} must be before end {self.end_label}",
                {"start": self.start_label, "end": self.end_label}
            )

    def __lt__(self, other: TimeInterval) -> bool:
        if not isinstance(other, TimeInterval):
            return NotImplemented
        return (self.start_minutes, self.end_minutes) < (other.start_minutes, other.end_minutes)

    @classmethod
    def parse(cls, start: str | time, end: str | time) -> TimeInterval:
        """Build from ``"HH:MM"`` strings or ``time`` values; ``end`` may be ``"24:00"``."""
        return cls(parse_time(start), parse_time(end, end_of_day=True))

    @classmethod
    def from_minutes(cls, start_minutes: int, end_minutes: int) -> TimeInterval:
        """Build from minute offsets since midnight."""
        return cls(from_minutes(start_minutes), from_minutes(end_minutes))

    @property
    def start_minutes(self) -> int:
        return to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return end_minutes(self.end)

    @property
    def start_label(self) -> str:
        return format_minutes(self.start_minutes)

    @property
    def end_label(self) -> str:
        return format_minutes(self.end_minutes)

    @property
    def duration_minutes(self) -> int:
        return duration(self)

    def starts_on(self, day: date, tz: tzinfo) -> datetime:
        return at_minutes(day, self.start_minutes, tz)

    def ends_on(self, day: date, tz: tzinfo) -> datetime:
        """Aware end datetime; a midnight end falls on the next day."""
        return at_minutes(day, self.end_minutes, tz)

    def __str__(self) -> str:
        return f"{self.start_label}-{self.end_label}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True iff the half-open intervals share at least one minute.

    Back-to-back intervals (10:00-11:00, 11:00-12:00) do not overlap.
    """
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes

def duration(interval: TimeInterval) -> int:
    """Length of the interval in minutes."""
    return interval.end_minutes - interval.start_minutes

def is_within(interval: TimeInterval, window: TimeInterval) -> bool:
    """True iff ``interval`` lies entirely inside ``window``."""
    return window.start_minutes <= interval.start_minutes and interval.end_minutes <= window.end_minutes

def overlap_minutes(a: TimeInterval, b: TimeInterval) -> int:
    """Minutes shared by both intervals, 0 when disjoint."""
    return max(0, min(a.end_minutes, b.end_minutes) - max(a.start_minutes, b.start_minutes))

def subtract(window: TimeInterval, busy: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Free gaps of ``window`` once every busy interval is removed, in order."""
    gaps: list[TimeInterval] = []
    cursor = window.start_minutes
    limit = window.end_minutes

    for interval in sorted(b for b in busy if overlaps(b, window)):
        if interval.start_minutes > cursor:
            gaps.append(TimeInterval.from_minutes(cursor, interval.start_minutes))
        cursor = max(cursor, interval.end_minutes)
        if cursor >= limit:
            break

    if cursor < limit:
        gaps.append(TimeInterval.from_minutes(cursor, limit))
    return gaps
