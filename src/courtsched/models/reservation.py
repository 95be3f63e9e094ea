"""
Reservation, slot and schedule block models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from courtsched.models.time_interval import TimeInterval


class ReservationStatus(Enum):
    """Closed set of reservation states."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def blocks_slot(self) -> bool:
        """Whether a reservation in this state occupies its court window."""
        return self in BLOCKING_STATUSES

TERMINAL_STATUSES = frozenset({
    ReservationStatus.COMPLETED,
    ReservationStatus.CANCELLED,
    ReservationStatus.NO_SHOW,
})
BLOCKING_STATUSES = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
})
# States that hold the slot regardless of other pending requests
SECURED_STATUSES = frozenset({
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
})


@dataclass
class Reservation:
    """A booking of one court for one window on one court-local date."""
    id: str
    court_id: str
    user_id: str
    date: date
    interval: TimeInterval
    status: ReservationStatus = ReservationStatus.PENDING
    total_amount: Decimal = Decimal('0.00')
    payment_id: str | None = None
    created_at: datetime | None = None
    confirmed_at: datetime | None = None
    checked_in_at: datetime | None = None
    checked_out_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancel_reason: str | None = None
    cancelled_by: str | None = None
    refund_percentage: float | None = None
    refund_amount: Decimal | None = None
    minutes_late: int | None = None
    minutes_early: int | None = None
    notes: str | None = None

    @property
    def start_time(self):
        return self.interval.start

    @property
    def end_time(self):
        return self.interval.end

    @property
    def duration_minutes(self) -> int:
        return self.interval.duration_minutes

    @property
    def is_active(self) -> bool:
        return self.status.blocks_slot

    def starts_at(self, tz: ZoneInfo) -> datetime:
        """Aware start datetime in the court's time zone."""
        return self.interval.starts_on(self.date, tz)

    def ends_at(self, tz: ZoneInfo) -> datetime:
        """Aware end datetime in the court's time zone; a midnight end is the next day."""
        return self.interval.ends_on(self.date, tz)

    @property
    def window_label(self) -> str:
        """Owner-free description of the booked window."""
        return f"{self.date.isoformat()} {self.interval}"

    def to_dict(self) -> dict[str, Any]:
        """Plain representation for logs, CLI output and stores."""
        return {
            'id': self.id,
            'court_id': self.court_id,
            'user_id': self.user_id,
            'date': self.date.isoformat(),
            'start': self.interval.start_label,
            'end': self.interval.end_label,
            'status': self.status.value,
            'total_amount': str(self.total_amount),
            'payment_id': self.payment_id,
            'checked_in_at': self.checked_in_at.isoformat() if self.checked_in_at else None,
            'checked_out_at': self.checked_out_at.isoformat() if self.checked_out_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'cancel_reason': self.cancel_reason,
            'refund_percentage': self.refund_percentage,
            'refund_amount': str(self.refund_amount) if self.refund_amount is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Reservation:
        """Build from a configuration/seed entry."""
        day = data['date']
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return cls(
            id=str(data['id']),
            court_id=str(data['court_id']),
            user_id=str(data.get('user_id', '')),
            date=day,
            interval=TimeInterval.parse(data['start'], data['end']),
            status=ReservationStatus(data.get('status', ReservationStatus.PENDING.value)),
            total_amount=Decimal(str(data.get('total_amount', '0.00'))),
            payment_id=data.get('payment_id'),
            notes=data.get('notes')
        )


@dataclass(frozen=True)
class Slot:
    """Candidate or available window on a court and date, with its price. Never stored."""
    court_id: str
    date: date
    interval: TimeInterval
    price: Decimal | None = None

    @property
    def duration_minutes(self) -> int:
        return self.interval.duration_minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'start': self.interval.start_label,
            'end': self.interval.end_label,
            'duration_minutes': self.duration_minutes,
            'price': str(self.price) if self.price is not None else None,
        }

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.interval}"


class BlockType(Enum):
    """Reasons a court window can be taken out of service."""
    MAINTENANCE = "maintenance"
    PRIVATE_EVENT = "private_event"
    WEATHER = "weather"
    STAFF_UNAVAILABLE = "staff_unavailable"
    OTHER = "other"


@dataclass(frozen=True)
class CourtBlock:
    """Operator-defined window during which a court cannot be booked."""
    id: str
    court_id: str
    date: date
    interval: TimeInterval
    block_type: BlockType = BlockType.MAINTENANCE
    reason: str | None = None

    @property
    def label(self) -> str:
        return self.reason or self.block_type.value

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CourtBlock:
        day = data['date']
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return cls(
            id=str(data['id']),
            court_id=str(data['court_id']),
            date=day,
            interval=TimeInterval.parse(data['start'], data['end']),
            block_type=BlockType(data.get('block_type', BlockType.MAINTENANCE.value)),
            reason=data.get('reason')
        )
