"""
Reservation lifecycle state machine.

The lifecycle never calls collaborators. Each event mutates the reservation
record and returns a :class:`TransitionResult` listing the intents
(payment capture, refunds, notifications, analytics) for the caller to
execute.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Union
from zoneinfo import ZoneInfo

from courtsched.exceptions import (
    CannotCancelPastReservationError,
    InvalidTransitionError,
    PaymentNotCapturedError,
    SlotNoLongerAvailableError,
    TooEarlyError,
    TooLateError,
)
from courtsched.models.court import Court
from courtsched.models.reservation import SECURED_STATUSES, Reservation, ReservationStatus
from courtsched.models.time_interval import TimeInterval
from courtsched.services.conflicts import find_conflicts
from courtsched.services.interfaces import PaymentResult
from courtsched.utils.logging_utils import LoggerMixin
from courtsched.utils.timezone_utils import TimezoneManager

DEFAULT_GRACE_BEFORE_MINUTES = 15
CENTS = Decimal('0.01')


class LifecycleEvent(Enum):
    """Events a reservation can receive."""
    CONFIRM_PAYMENT = "confirm_payment"
    CANCEL = "cancel"
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    MARK_NO_SHOW = "mark_no_show"


# The only legal moves; terminal states have no entries.
TRANSITIONS: dict[tuple[ReservationStatus, LifecycleEvent], ReservationStatus] = {
    (ReservationStatus.PENDING, LifecycleEvent.CONFIRM_PAYMENT): ReservationStatus.CONFIRMED,
    (ReservationStatus.PENDING, LifecycleEvent.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, LifecycleEvent.CANCEL): ReservationStatus.CANCELLED,
    (ReservationStatus.CONFIRMED, LifecycleEvent.CHECK_IN): ReservationStatus.CHECKED_IN,
    (ReservationStatus.CONFIRMED, LifecycleEvent.MARK_NO_SHOW): ReservationStatus.NO_SHOW,
    (ReservationStatus.CHECKED_IN, LifecycleEvent.CHECK_OUT): ReservationStatus.COMPLETED,
}


def next_status(status: ReservationStatus, event: LifecycleEvent) -> ReservationStatus:
    """Target state of ``event`` from ``status``; raises on illegal moves."""
    try:
        return TRANSITIONS[(status, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot {event.value.replace('_', ' ')} a reservation that is {status.value}",
            status.value,
            event.value
        ) from None

def allowed_events(status: ReservationStatus) -> list[LifecycleEvent]:
    return [event for (source, event) in TRANSITIONS if source == status]


@dataclass(frozen=True)
class PaymentCaptureRequest:
    """Ask the payment provider to capture the booking amount."""
    reservation_id: str
    amount: Decimal
    reference: str


@dataclass(frozen=True)
class PaymentRefund:
    """Ask the payment provider to refund part of a captured payment."""
    reservation_id: str
    payment_reference: str
    amount: Decimal
    percentage: float


@dataclass(frozen=True)
class Notification:
    """Message for the reservation's user."""
    kind: str
    reservation_id: str
    user_id: str
    court_id: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalyticsEvent:
    """Lifecycle fact for reporting."""
    name: str
    reservation_id: str
    court_id: str
    occurred_at: datetime
    properties: dict[str, Any] = field(default_factory=dict)


Intent = Union[PaymentCaptureRequest, PaymentRefund, Notification, AnalyticsEvent]


@dataclass
class TransitionResult:
    """Outcome of a lifecycle event."""
    reservation: Reservation
    intents: list[Intent] = field(default_factory=list)
    previous_status: ReservationStatus | None = None
    refund_percentage: float | None = None
    refund_amount: Decimal | None = None

    @property
    def status(self) -> ReservationStatus:
        return self.reservation.status

    def of_type(self, intent_type: type) -> list[Any]:
        return [intent for intent in self.intents if isinstance(intent, intent_type)]


class ReservationLifecycle(LoggerMixin):
    """Applies lifecycle events to reservations.

    Args:
        grace_before_minutes: How long before the start a check-in is accepted
    """

    def __init__(self, grace_before_minutes: int = DEFAULT_GRACE_BEFORE_MINUTES):
        super().__init__()
        if grace_before_minutes < 0:
            raise ValueError("grace_before_minutes cannot be negative")
        self.grace_before = timedelta(minutes=grace_before_minutes)
        self.set_log_context(service="lifecycle")

    @staticmethod
    def _tz(court: Court) -> ZoneInfo:
        return TimezoneManager(court.timezone).local_tz

    def _notify(self, kind: str, reservation: Reservation, message: str, **data: Any) -> Notification:
        return Notification(kind, reservation.id, reservation.user_id, reservation.court_id, message, data)

    def _event(self, name: str, reservation: Reservation, now: datetime, **properties: Any) -> AnalyticsEvent:
        return AnalyticsEvent(name, reservation.id, reservation.court_id, now, properties)

    def create(
        self,
        reservation_id: str,
        court: Court,
        user_id: str,
        day: date,
        interval: TimeInterval,
        now: datetime,
        notes: str | None = None
    ) -> TransitionResult:
        """New pending reservation priced from the court's rate table.

        Availability and policy checks belong to the caller.
        """
        reservation = Reservation(
            id=reservation_id,
            court_id=court.id,
            user_id=user_id,
            date=day,
            interval=interval,
            status=ReservationStatus.PENDING,
            total_amount=court.policy.amount_for(day, interval),
            created_at=now,
            notes=notes
        )
        intents: list[Intent] = [
            PaymentCaptureRequest(reservation.id, reservation.total_amount, reservation.id),
            self._notify(
                "reservation_created",
                reservation,
                f"Reservation for {court.name} on {reservation.window_label} is awaiting payment",
                amount=str(reservation.total_amount)
            ),
            self._event(
                "reservation_created",
                reservation,
                now,
                duration_minutes=reservation.duration_minutes,
                amount=str(reservation.total_amount)
            ),
        ]
        self.debug("Created reservation", reservation=reservation.id, court=court.id, window=reservation.window_label)
        return TransitionResult(reservation, intents)

    def refresh(self, reservation: Reservation, court: Court, now: datetime) -> TransitionResult | None:
        """Derive ``no_show`` for a confirmed reservation whose window has passed.

        Returns ``None`` when nothing changed.
        """
        if reservation.status != ReservationStatus.CONFIRMED:
            return None
        if now <= reservation.ends_at(self._tz(court)):
            return None

        previous = reservation.status
        reservation.status = next_status(previous, LifecycleEvent.MARK_NO_SHOW)
        self.info("Reservation marked as no-show", reservation=reservation.id, court=court.id)
        return TransitionResult(
            reservation,
            [
                self._notify("reservation_no_show", reservation, f"You missed your reservation on {reservation.window_label}"),
                self._event("reservation_no_show", reservation, now),
            ],
            previous_status=previous
        )

    def confirm_payment(
        self,
        reservation: Reservation,
        court: Court,
        payment: PaymentResult,
        active: Iterable[Reservation],
        now: datetime
    ) -> TransitionResult:
        """Move a pending reservation to confirmed once payment is captured.

        The slot is re-checked against reservations that already secured an
        overlapping window. If one did, this reservation is cancelled with a
        full refund and :class:`SlotNoLongerAvailableError` is raised carrying
        that result.
        """
        previous = reservation.status
        target = next_status(previous, LifecycleEvent.CONFIRM_PAYMENT)

        if not payment.success or payment.amount < reservation.total_amount:
            raise PaymentNotCapturedError(
                "Payment was not captured for the full amount",
                {
                    "reservation_id": reservation.id,
                    "success": payment.success,
                    "amount": str(payment.amount),
                    "required": str(reservation.total_amount),
                }
            )

        reservation.payment_id = payment.reference
        secured = [other for other in active if other.status in SECURED_STATUSES]
        conflicts = find_conflicts(reservation, secured)
        if conflicts:
            reservation.status = next_status(previous, LifecycleEvent.CANCEL)
            reservation.cancelled_at = now
            reservation.cancel_reason = "slot_no_longer_available"
            reservation.refund_percentage = 100.0
            reservation.refund_amount = payment.amount
            intents: list[Intent] = []
            if payment.reference and payment.amount > 0:
                intents.append(PaymentRefund(reservation.id, payment.reference, payment.amount, 100.0))
            intents.append(self._notify(
                "reservation_slot_lost",
                reservation,
                f"The slot {reservation.window_label} was taken before your payment completed",
                refund_amount=str(payment.amount)
            ))
            intents.append(self._event("reservation_slot_lost", reservation, now))
            result = TransitionResult(reservation, intents, previous, 100.0, payment.amount)
            windows = [str(other.interval) for other in conflicts]
            self.warning("Slot secured by another reservation", reservation=reservation.id, windows=windows)
            raise SlotNoLongerAvailableError(
                f"Slot {reservation.window_label} is no longer available",
                windows,
                result=result
            )

        reservation.status = target
        reservation.confirmed_at = now
        return TransitionResult(
            reservation,
            [
                self._notify("reservation_confirmed", reservation, f"Reservation confirmed for {reservation.window_label}"),
                self._event("reservation_confirmed", reservation, now, amount=str(payment.amount)),
            ],
            previous_status=previous
        )

    def cancel(
        self,
        reservation: Reservation,
        court: Court,
        now: datetime,
        reason: str | None = None,
        actor_id: str | None = None
    ) -> TransitionResult:
        """Cancel before the start; the refund tier depends on the notice given."""
        previous = reservation.status
        target = next_status(previous, LifecycleEvent.CANCEL)

        starts_at = reservation.starts_at(self._tz(court))
        if now >= starts_at:
            raise CannotCancelPastReservationError(
                "Cannot cancel a reservation that has already started",
                {"reservation_id": reservation.id, "start": starts_at.isoformat()}
            )

        hours_before = (starts_at - now).total_seconds() / 3600
        percentage = court.policy.cancellation_policy.refund_percentage(hours_before)
        refund_amount = Decimal('0.00')
        if reservation.payment_id and previous == ReservationStatus.CONFIRMED:
            refund_amount = (reservation.total_amount * Decimal(str(percentage)) / Decimal(100)).quantize(
                CENTS, rounding=ROUND_HALF_UP
            )

        reservation.status = target
        reservation.cancelled_at = now
        reservation.cancel_reason = reason
        reservation.cancelled_by = actor_id
        reservation.refund_percentage = percentage
        reservation.refund_amount = refund_amount

        intents: list[Intent] = []
        if refund_amount > 0:
            intents.append(PaymentRefund(reservation.id, reservation.payment_id, refund_amount, percentage))
        intents.append(self._notify(
            "reservation_cancelled",
            reservation,
            f"Reservation on {reservation.window_label} was cancelled",
            refund_percentage=percentage,
            refund_amount=str(refund_amount)
        ))
        intents.append(self._event(
            "reservation_cancelled",
            reservation,
            now,
            hours_before_start=round(hours_before, 2),
            refund_percentage=percentage
        ))
        self.debug("Cancelled reservation", reservation=reservation.id, refund_percentage=percentage)
        return TransitionResult(reservation, intents, previous, percentage, refund_amount)

    def check_in(self, reservation: Reservation, court: Court, now: datetime) -> TransitionResult:
        """Check in within ``[start - grace, end)``."""
        previous = reservation.status
        target = next_status(previous, LifecycleEvent.CHECK_IN)

        tz = self._tz(court)
        starts_at = reservation.starts_at(tz)
        ends_at = reservation.ends_at(tz)
        opens_at = starts_at - self.grace_before
        if now < opens_at:
            raise TooEarlyError(
                f"Check-in opens at {opens_at.strftime('%H:%M')}",
                {"reservation_id": reservation.id, "opens_at": opens_at.isoformat()}
            )
        if now >= ends_at:
            raise TooLateError(
                "Reservation has already ended",
                {"reservation_id": reservation.id, "ended_at": ends_at.isoformat()}
            )

        reservation.status = target
        reservation.checked_in_at = now
        reservation.minutes_late = max(0, int((now - starts_at).total_seconds() // 60))
        return TransitionResult(
            reservation,
            [self._event("reservation_checked_in", reservation, now, minutes_late=reservation.minutes_late)],
            previous_status=previous
        )

    def check_out(self, reservation: Reservation, court: Court, now: datetime) -> TransitionResult:
        """Complete a checked-in reservation."""
        previous = reservation.status
        target = next_status(previous, LifecycleEvent.CHECK_OUT)

        if reservation.checked_in_at is not None and now < reservation.checked_in_at:
            raise InvalidTransitionError(
                "Check-out cannot precede check-in",
                previous.value,
                LifecycleEvent.CHECK_OUT.value
            )

        ends_at = reservation.ends_at(self._tz(court))
        reservation.status = target
        reservation.checked_out_at = now
        reservation.minutes_early = max(0, int((ends_at - now).total_seconds() // 60))
        return TransitionResult(
            reservation,
            [
                self._notify("reservation_completed", reservation, f"Thanks for playing on {reservation.window_label}"),
                self._event("reservation_completed", reservation, now, minutes_early=reservation.minutes_early),
            ],
            previous_status=previous
        )
