"""
Court and court policy models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from courtsched.exceptions import PolicyConfigError
from courtsched.models.time_interval import TimeInterval, end_minutes, format_minutes, parse_time, to_minutes

DEFAULT_GRANULARITY_MINUTES = 30
DEFAULT_PEAK_WINDOWS = (
    TimeInterval(time(6, 0), time(8, 0)),
    TimeInterval(time(18, 0), time(22, 0)),
)
WEEKEND_KEYS = frozenset({0, 6})
CENTS = Decimal('0.01')


def weekday_key(day: date) -> int:
    """Operating-hours key for a date: 0 = Sunday ... 6 = Saturday."""
    return day.isoweekday() % 7

def _money(value: Any) -> Decimal | None:
    if value is None or value == '':
        return None
    amount = Decimal(str(value))
    if amount < 0:
        raise PolicyConfigError("Rates cannot be negative", {"rate": str(value)})
    return amount


@dataclass(frozen=True)
class DayHours:
    """Operating hours for one weekday."""
    is_open: bool
    open_time: time | None = None
    close_time: time | None = None

    def __post_init__(self) -> None:
        if self.is_open:
            if self.open_time is None or self.close_time is None:
                raise PolicyConfigError("Open days need both open and close times")
            opens, closes = to_minutes(self.open_time), end_minutes(self.close_time)
            if opens >= closes:
                raise PolicyConfigError(
                    "Opening time must be before closing time",
                    {"open": format_minutes(opens), "close": format_minutes(closes)}
                )

    @classmethod
    def closed(cls) -> DayHours:
        return cls(is_open=False)

    @property
    def window(self) -> TimeInterval | None:
        """Operating window, ``None`` on a closed day."""
        if not self.is_open:
            return None
        return TimeInterval(self.open_time, self.close_time)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DayHours:
        if not data.get('is_open', True):
            return cls.closed()
        return cls(True, parse_time(data['open']), parse_time(data['close'], end_of_day=True))


@dataclass(frozen=True)
class RefundTier:
    """Refund share granted when cancelling at least ``threshold_hours`` ahead."""
    threshold_hours: float
    refund_percentage: float

    def __post_init__(self) -> None:
        if self.threshold_hours < 0:
            raise PolicyConfigError("Refund tier threshold cannot be negative")
        if not 0 <= self.refund_percentage <= 100:
            raise PolicyConfigError(
                "Refund percentage must be between 0 and 100",
                {"refund_percentage": self.refund_percentage}
            )


@dataclass(frozen=True)
class CancellationPolicy:
    """Human-readable policy plus the tiers used for refund computation."""
    description: str = 'Cancellations must be made at least 24 hours in advance for a full refund.'
    tiers: tuple[RefundTier, ...] = (
        RefundTier(24, 100),
        RefundTier(2, 50),
    )

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.tiers, key=lambda tier: tier.threshold_hours, reverse=True))
        object.__setattr__(self, 'tiers', ordered)

    def refund_percentage(self, hours_before_start: float) -> float:
        """Refund share for a cancellation made ``hours_before_start`` ahead."""
        for tier in self.tiers:
            if hours_before_start >= tier.threshold_hours:
                return tier.refund_percentage
        return 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CancellationPolicy:
        if not data:
            return cls()
        tiers = data.get('tiers')
        if tiers is None:
            return cls(description=data.get('description', cls.description))
        return cls(
            description=data.get('description', cls.description),
            tiers=tuple(
                RefundTier(float(tier['threshold_hours']), float(tier['refund_percentage']))
                for tier in tiers
            )
        )


@dataclass(frozen=True)
class CourtPolicy:
    """Per-court scheduling configuration."""
    operating_hours: dict[int, DayHours]
    hourly_rate: Decimal
    min_booking_minutes: int = 60
    max_booking_minutes: int = 240
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES
    max_advance_booking_days: int = 30
    peak_hour_rate: Decimal | None = None
    weekend_rate: Decimal | None = None
    peak_windows: tuple[TimeInterval, ...] = DEFAULT_PEAK_WINDOWS
    cancellation_policy: CancellationPolicy = field(default_factory=CancellationPolicy)

    def __post_init__(self) -> None:
        step = self.granularity_minutes
        if step <= 0:
            raise PolicyConfigError("Granularity must be positive", {"granularity_minutes": step})
        for name in ('min_booking_minutes', 'max_booking_minutes'):
            value = getattr(self, name)
            if value <= 0 or value % step:
                raise PolicyConfigError(
                    f"{name} must be a positive multiple of {step} minutes",
                    {name: value, "granularity_minutes": step}
                )
        if self.min_booking_minutes > self.max_booking_minutes:
            raise PolicyConfigError(
                "Minimum booking duration exceeds maximum",
                {"min_booking_minutes": self.min_booking_minutes, "max_booking_minutes": self.max_booking_minutes}
            )
        if self.max_advance_booking_days < 0:
            raise PolicyConfigError("max_advance_booking_days cannot be negative")
        unknown = set(self.operating_hours) - set(range(7))
        if unknown:
            raise PolicyConfigError("Operating hours keys must be weekdays 0-6", {"keys": sorted(unknown)})
        object.__setattr__(self, 'hourly_rate', _money(self.hourly_rate))
        object.__setattr__(self, 'peak_hour_rate', _money(self.peak_hour_rate))
        object.__setattr__(self, 'weekend_rate', _money(self.weekend_rate))

    def hours_for(self, day: date) -> DayHours:
        """Operating hours for a date; missing weekdays are closed."""
        return self.operating_hours.get(weekday_key(day), DayHours.closed())

    def operating_window(self, day: date) -> TimeInterval | None:
        return self.hours_for(day).window

    def is_peak(self, start: time) -> bool:
        minute = to_minutes(start)
        return any(window.start_minutes <= minute < window.end_minutes for window in self.peak_windows)

    def rate_for(self, day: date, start: time) -> Decimal:
        """Hourly rate for a booking starting at ``start`` on ``day``.

        Weekend rate wins over peak rate, which wins over the base rate.
        """
        if weekday_key(day) in WEEKEND_KEYS and self.weekend_rate is not None:
            return self.weekend_rate
        if self.peak_hour_rate is not None and self.is_peak(start):
            return self.peak_hour_rate
        return self.hourly_rate

    def amount_for(self, day: date, interval: TimeInterval) -> Decimal:
        """Total price of a booking: rate times duration in hours."""
        hours = Decimal(interval.duration_minutes) / Decimal(60)
        return (self.rate_for(day, interval.start) * hours).quantize(CENTS, rounding=ROUND_HALF_UP)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CourtPolicy:
        """Build a policy from configuration.

        ``operating_hours`` may carry a ``default`` row applied to every
        weekday, overridden by rows keyed ``0`` (Sunday) to ``6`` (Saturday).
        """
        raw_hours = data.get('operating_hours') or {}
        hours: dict[int, DayHours] = {}
        if 'default' in raw_hours:
            default = DayHours.from_dict(raw_hours['default'])
            hours = {day: default for day in range(7)}
        for key, row in raw_hours.items():
            if str(key) == 'default':
                continue
            hours[int(key)] = DayHours.from_dict(row)

        kwargs: dict[str, Any] = {}
        for name in ('min_booking_minutes', 'max_booking_minutes', 'granularity_minutes', 'max_advance_booking_days'):
            if name in data:
                kwargs[name] = int(data[name])
        if data.get('peak_windows'):
            kwargs['peak_windows'] = tuple(TimeInterval.parse(start, end) for start, end in data['peak_windows'])

        return cls(
            operating_hours=hours,
            hourly_rate=data['hourly_rate'],
            peak_hour_rate=data.get('peak_hour_rate'),
            weekend_rate=data.get('weekend_rate'),
            cancellation_policy=CancellationPolicy.from_dict(data.get('cancellation_policy')),
            **kwargs
        )


@dataclass
class Court:
    """Bookable court. Owner and amenities are opaque to scheduling."""
    id: str
    name: str
    policy: CourtPolicy
    timezone: str = 'America/Mexico_City'
    owner_ref: str | None = None
    is_active: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, court_id: str, data: dict[str, Any], default_timezone: str = 'America/Mexico_City') -> Court:
        return cls(
            id=str(court_id),
            name=data.get('name', str(court_id)),
            policy=CourtPolicy.from_dict(data['policy']),
            timezone=data.get('timezone', default_timezone),
            owner_ref=data.get('owner'),
            is_active=data.get('is_active', True),
            metadata=dict(data.get('metadata') or {})
        )
