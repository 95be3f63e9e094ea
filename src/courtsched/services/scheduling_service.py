"""
Scheduling service: the public entry point of the engine.

Wraps the availability calculator, conflict detector and reservation
lifecycle around a persistence store, and executes the intents the
lifecycle returns against the optional payment, notification and
analytics collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, time, timedelta
from typing import Any

from courtsched.config.error_aggregator import aggregate_error
from courtsched.config.logging_filters import with_correlation_id
from courtsched.config.types import AppConfig
from courtsched.exceptions import (
    BlockNotFoundError,
    CourtNotFoundError,
    PaymentNotCapturedError,
    PolicyConfigError,
    PolicyViolationError,
    ReservationNotFoundError,
    SchedulingError,
    SlotNoLongerAvailableError,
    SlotUnavailableError,
    ValidationError,
    handle_errors,
)
from courtsched.models.court import Court, CourtPolicy, DayHours
from courtsched.models.reservation import BlockType, CourtBlock, Reservation
from courtsched.models.time_interval import TimeInterval
from courtsched.services.availability import AvailabilityCalculator, AvailabilityResult
from courtsched.services.clock import SystemClock
from courtsched.services.conflicts import ConflictDetail, detect_conflicts, find_block_conflicts, find_conflicts
from courtsched.services.interfaces import (
    AnalyticsSink,
    Clock,
    Notifier,
    PaymentGateway,
    PaymentResult,
    PersistenceStore,
)
from courtsched.services.lifecycle import (
    DEFAULT_GRACE_BEFORE_MINUTES,
    AnalyticsEvent,
    Notification,
    PaymentRefund,
    ReservationLifecycle,
    TransitionResult,
)
from courtsched.utils.locks import KeyedLock
from courtsched.utils.logging_utils import EnhancedLoggerMixin, log_execution

SERVICE = "scheduling"


@dataclass(frozen=True)
class AvailabilityCheck:
    """Answer to a point availability query."""
    court_id: str
    date: date
    interval: TimeInterval
    available: bool
    reason: str | None = None
    conflicting_windows: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            'court_id': self.court_id,
            'date': self.date.isoformat(),
            'window': str(self.interval),
            'available': self.available,
            'reason': self.reason,
            'conflicting_windows': list(self.conflicting_windows),
        }


@dataclass(frozen=True)
class ReservationPage:
    """One page of a user's reservations, newest first."""
    reservations: tuple[Reservation, ...]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.page_size)


def parse_date(value: str | date) -> date:
    """Parse an ISO date (or pass a ``date`` through)."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValidationError(f"Invalid date {value!r}", {"value": str(value)}) from e


class SchedulingService(EnhancedLoggerMixin):
    """Court reservation scheduling.

    Every mutating operation holds an exclusive lock for the reservation's
    ``(court_id, date)`` across its read-check-write sequence, and
    reservations are inserted through the store's
    ``append_if_no_conflict``. Errors reach the caller unchanged.

    Args:
        store: Persistence collaborator
        clock: Source of the current time (defaults to the system clock)
        payment_gateway: Executes refunds and optional captures
        notifier: Receives user notifications
        analytics: Receives lifecycle events
        grace_before_minutes: Check-in grace period before the start
        step_minutes: Slot walk step; ``None`` uses each court's granularity
    """

    def __init__(
        self,
        store: PersistenceStore,
        clock: Clock | None = None,
        payment_gateway: PaymentGateway | None = None,
        notifier: Notifier | None = None,
        analytics: AnalyticsSink | None = None,
        grace_before_minutes: int = DEFAULT_GRACE_BEFORE_MINUTES,
        step_minutes: int | None = None,
        timezone: str = "America/Mexico_City"
    ):
        super().__init__()
        self.store = store
        self.clock = clock or SystemClock(timezone)
        self.payment_gateway = payment_gateway
        self.notifier = notifier
        self.analytics = analytics
        self.step_minutes = step_minutes
        self.availability = AvailabilityCalculator()
        self.lifecycle = ReservationLifecycle(grace_before_minutes)
        self._locks = KeyedLock()
        self.set_log_context(service=SERVICE)

    @classmethod
    def from_config(cls, config: AppConfig, store: PersistenceStore | None = None, **collaborators: Any) -> SchedulingService:
        """Service wired from application configuration.

        Without ``store`` an in-memory store is seeded from the configured
        courts, reservations and blocks.
        """
        if store is None:
            from courtsched.services.memory_store import InMemoryStore
            store = InMemoryStore.from_config(config)
        collaborators.setdefault('grace_before_minutes', config.checkin_grace_minutes)
        collaborators.setdefault('step_minutes', config.default_step_minutes)
        collaborators.setdefault('timezone', config.timezone)
        return cls(store, **collaborators)

    # Loading helpers

    def _court(self, court_id: str) -> Court:
        court = self.store.load_court(str(court_id))
        if court is None:
            raise CourtNotFoundError(court_id)
        return court

    def _reservation(self, reservation_id: str) -> Reservation:
        reservation = self.store.load_by_id(str(reservation_id))
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def _request(self, day: str | date, start: str | time, end: str | time) -> tuple[date, TimeInterval]:
        return parse_date(day), TimeInterval.parse(start, end)

    def _refreshed(self, reservation: Reservation, court: Court | None = None) -> Reservation:
        """Apply the lazy no-show derivation and persist it when it fires.

        Runs on every read and, under the key lock, before every lifecycle
        event, so an event on a missed reservation meets ``no_show``.
        """
        court = court or self._court(reservation.court_id)
        result = self.lifecycle.refresh(reservation, court, self.clock.now())
        if result is not None:
            self.store.save(result.reservation)
            self._execute(result)
        return reservation

    # Intent execution

    def _execute(self, result: TransitionResult) -> None:
        """Hand the intents of a committed transition to the collaborators.

        The reservation is already saved, so collaborator failures are
        logged and reported but do not undo the transition. Capture
        requests are left to the caller, who owns the checkout flow.
        """
        for intent in result.intents:
            try:
                if isinstance(intent, PaymentRefund) and self.payment_gateway is not None:
                    refund = self.payment_gateway.refund(intent.payment_reference, intent.amount)
                    if not refund.success:
                        self.warning(
                            "Refund was not accepted",
                            reservation=intent.reservation_id,
                            amount=str(intent.amount)
                        )
                elif isinstance(intent, Notification) and self.notifier is not None:
                    self.notifier.notify(intent)
                elif isinstance(intent, AnalyticsEvent) and self.analytics is not None:
                    self.analytics.record(intent)
            except Exception as e:
                self.error(
                    f"Failed to execute {type(intent).__name__}",
                    exc_info=e,
                    reservation=result.reservation.id
                )
                aggregate_error(str(e), SERVICE, e.__traceback__)

    # Mutating operations

    @with_correlation_id
    @log_execution(level='DEBUG', include_args=True)
    def create_reservation(
        self,
        court_id: str,
        user_id: str,
        day: str | date,
        start: str | time,
        end: str | time,
        notes: str | None = None
    ) -> TransitionResult:
        """Create a pending reservation if the window is bookable.

        Raises:
            InvalidIntervalError: malformed window
            PolicyViolationError: window breaks the court policy
            SlotUnavailableError: window overlaps an active reservation or block
        """
        with handle_errors(SchedulingError, SERVICE, "create reservation"):
            day, interval = self._request(day, start, end)
            court = self._court(court_id)
            now = self.clock.now()
            self.availability.validate_request(court, day, interval, now)

            with self._locks.hold((court.id, day)):
                blocked = find_block_conflicts(court.id, day, interval, self.store.load_blocks(court.id, day))
                if blocked:
                    raise SlotUnavailableError(
                        f"Court {court.id} is blocked during {interval}",
                        [str(block.interval) for block in blocked]
                    )

                result = self.lifecycle.create(
                    self.store.next_reservation_id(), court, str(user_id), day, interval, now, notes
                )
                conflicts = self.store.append_if_no_conflict(result.reservation)
                if conflicts:
                    raise SlotUnavailableError(
                        f"Requested slot {day.isoformat()} {interval} is not available",
                        [str(other.interval) for other in conflicts]
                    )

            self.info(
                "Reservation created",
                reservation=result.reservation.id,
                court=court.id,
                window=result.reservation.window_label
            )
            self._execute(result)
            return result

    @with_correlation_id
    @log_execution(level='DEBUG')
    def confirm_payment(self, reservation_id: str, payment: PaymentResult) -> TransitionResult:
        """Confirm a pending reservation once its payment was captured.

        Raises:
            PaymentNotCapturedError: payment failed or fell short; reservation stays pending
            SlotNoLongerAvailableError: another reservation secured the slot first;
                this one is cancelled with a full refund
        """
        with handle_errors(SchedulingError, SERVICE, "confirm payment"):
            reservation = self._reservation(reservation_id)
            court = self._court(reservation.court_id)

            with self._locks.hold((court.id, reservation.date)):
                reservation = self._reservation(reservation_id)
                self._refreshed(reservation, court)
                active = self.store.load_active_reservations(court.id, reservation.date)
                try:
                    result = self.lifecycle.confirm_payment(reservation, court, payment, active, self.clock.now())
                except SlotNoLongerAvailableError as e:
                    self.store.save(e.result.reservation)
                    self._execute(e.result)
                    raise
                self.store.save(result.reservation)

            self.info("Reservation confirmed", reservation=reservation.id, court=court.id)
            self._execute(result)
            return result

    @with_correlation_id
    @log_execution(level='DEBUG')
    def capture_and_confirm(self, reservation_id: str) -> TransitionResult:
        """Capture the booking amount through the payment gateway, then confirm."""
        if self.payment_gateway is None:
            raise PaymentNotCapturedError(
                "No payment gateway configured",
                {"reservation_id": reservation_id}
            )
        reservation = self._reservation(reservation_id)
        payment = self.payment_gateway.capture(reservation.total_amount, reservation.id)
        return self.confirm_payment(reservation.id, payment)

    @with_correlation_id
    @log_execution(level='DEBUG')
    def cancel_reservation(
        self,
        reservation_id: str,
        actor_id: str | None = None,
        reason: str | None = None
    ) -> TransitionResult:
        """Cancel before the start and refund according to the court's tiers.

        Authorization of ``actor_id`` is the caller's concern.
        """
        with handle_errors(SchedulingError, SERVICE, "cancel reservation"):
            reservation = self._reservation(reservation_id)
            court = self._court(reservation.court_id)
            with self._locks.hold((court.id, reservation.date)):
                reservation = self._reservation(reservation_id)
                self._refreshed(reservation, court)
                result = self.lifecycle.cancel(reservation, court, self.clock.now(), reason, actor_id)
                self.store.save(result.reservation)

            self.info(
                "Reservation cancelled",
                reservation=reservation.id,
                refund_percentage=result.refund_percentage
            )
            self._execute(result)
            return result

    @with_correlation_id
    @log_execution(level='DEBUG')
    def check_in(self, reservation_id: str) -> TransitionResult:
        """Check a confirmed reservation in."""
        with handle_errors(SchedulingError, SERVICE, "check in"):
            reservation = self._reservation(reservation_id)
            court = self._court(reservation.court_id)
            with self._locks.hold((court.id, reservation.date)):
                reservation = self._reservation(reservation_id)
                self._refreshed(reservation, court)
                result = self.lifecycle.check_in(reservation, court, self.clock.now())
                self.store.save(result.reservation)
            self._execute(result)
            return result

    @with_correlation_id
    @log_execution(level='DEBUG')
    def check_out(self, reservation_id: str) -> TransitionResult:
        """Complete a checked-in reservation."""
        with handle_errors(SchedulingError, SERVICE, "check out"):
            reservation = self._reservation(reservation_id)
            court = self._court(reservation.court_id)
            with self._locks.hold((court.id, reservation.date)):
                reservation = self._reservation(reservation_id)
                self._refreshed(reservation, court)
                result = self.lifecycle.check_out(reservation, court, self.clock.now())
                self.store.save(result.reservation)
            self._execute(result)
            return result

    @with_correlation_id
    def block_time_slots(
        self,
        court_id: str,
        day: str | date,
        start: str | time,
        end: str | time,
        block_type: BlockType | str = BlockType.MAINTENANCE,
        reason: str | None = None
    ) -> CourtBlock:
        """Take a window out of service; refused while active reservations overlap it."""
        with handle_errors(SchedulingError, SERVICE, "block time slots"):
            day, interval = self._request(day, start, end)
            court = self._court(court_id)
            block_type = BlockType(block_type)

            with self._locks.hold((court.id, day)):
                candidate = Reservation(id='', court_id=court.id, user_id='', date=day, interval=interval)
                conflicts = find_conflicts(candidate, self.store.load_active_reservations(court.id, day))
                if conflicts:
                    raise SlotUnavailableError(
                        "Cannot block a window with existing reservations",
                        [str(other.interval) for other in conflicts]
                    )
                block = CourtBlock(self.store.next_block_id(), court.id, day, interval, block_type, reason)
                self.store.save_block(block)

            self.info("Blocked time slots", court=court.id, window=f"{day.isoformat()} {interval}", block=block.id)
            return block

    def unblock_time_slots(self, block_id: str) -> None:
        """Remove a schedule block."""
        with handle_errors(SchedulingError, SERVICE, "unblock time slots"):
            if not self.store.delete_block(str(block_id)):
                raise BlockNotFoundError(block_id)
            self.info("Unblocked time slots", block=block_id)

    @with_correlation_id
    def update_court_policy(self, court_id: str, **changes: Any) -> Court:
        """Replace fields of a court's policy, such as operating hours or rates.

        ``operating_hours`` may hold ``DayHours`` or configuration rows keyed
        by weekday. The new policy is validated as a whole before it is
        stored. Existing reservations keep the amount they were priced at.

        Raises:
            PolicyConfigError: unknown field or the resulting policy is invalid
        """
        with handle_errors(SchedulingError, SERVICE, "update court policy"):
            court = self._court(court_id)
            unknown = set(changes) - {f.name for f in fields(CourtPolicy)}
            if unknown:
                raise PolicyConfigError("Unknown policy fields", {"fields": sorted(unknown)})

            hours = changes.get('operating_hours')
            if hours is not None:
                changes['operating_hours'] = {
                    int(day): row if isinstance(row, DayHours) else DayHours.from_dict(row)
                    for day, row in hours.items()
                }

            updated = replace(court, policy=replace(court.policy, **changes))
            self.store.save_court(updated)
            self.info("Updated court policy", court=court.id, fields=",".join(sorted(changes)))
            return updated

    # Read-only queries

    def get_reservation(self, reservation_id: str) -> Reservation:
        return self._refreshed(self._reservation(reservation_id))

    def get_user_reservations(self, user_id: str, page: int = 1, page_size: int = 10) -> ReservationPage:
        """A user's reservations across courts, newest first, one page at a time."""
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive", {"page": page, "page_size": page_size})

        reservations = [self._refreshed(r) for r in self.store.load_user_reservations(str(user_id))]
        reservations.sort(key=lambda r: (r.created_at is not None, r.created_at or r.date, r.id), reverse=True)
        offset = (page - 1) * page_size
        return ReservationPage(tuple(reservations[offset:offset + page_size]), len(reservations), page, page_size)

    def get_court_reservations(self, court_id: str, day: str | date) -> list[Reservation]:
        """Every reservation of a court on a date, ordered by start."""
        day = parse_date(day)
        court = self._court(court_id)
        reservations = [self._refreshed(r, court) for r in self.store.load_reservations(court.id, day)]
        return sorted(reservations, key=lambda r: (r.interval, r.id))

    def get_court_blocks(self, court_id: str, day: str | date) -> list[CourtBlock]:
        day = parse_date(day)
        return sorted(self.store.load_blocks(self._court(court_id).id, day), key=lambda b: b.interval)

    def get_available_slots(
        self,
        court_id: str,
        day: str | date,
        step_minutes: int | None = None
    ) -> AvailabilityResult:
        """Bookable windows of a court on a date."""
        day = parse_date(day)
        court = self._court(court_id)
        return self.availability.compute_free_slots(
            court,
            day,
            self.store.load_active_reservations(court.id, day),
            step_minutes=step_minutes or self.step_minutes,
            now=self.clock.now(),
            blocks=self.store.load_blocks(court.id, day)
        )

    def check_availability(
        self,
        court_id: str,
        day: str | date,
        start: str | time,
        end: str | time
    ) -> AvailabilityCheck:
        """Whether the window could be booked right now."""
        day, interval = self._request(day, start, end)
        court = self._court(court_id)
        try:
            self.availability.validate_request(court, day, interval, self.clock.now())
        except PolicyViolationError as e:
            return AvailabilityCheck(court.id, day, interval, False, e.rule)

        details = detect_conflicts(
            court.id,
            day,
            interval,
            self.store.load_active_reservations(court.id, day),
            self.store.load_blocks(court.id, day)
        )
        if details:
            return AvailabilityCheck(
                court.id,
                day,
                interval,
                False,
                "slot_unavailable",
                tuple(str(detail.window) for detail in details)
            )
        return AvailabilityCheck(court.id, day, interval, True)

    def detect_conflicts(
        self,
        court_id: str,
        day: str | date,
        start: str | time,
        end: str | time
    ) -> list[ConflictDetail]:
        """Operator diagnostic: every broken policy rule and every overlap of the window."""
        day, interval = self._request(day, start, end)
        court = self._court(court_id)
        return detect_conflicts(
            court.id,
            day,
            interval,
            self.store.load_active_reservations(court.id, day),
            self.store.load_blocks(court.id, day),
            self.availability.policy_conflicts(court, day, interval, self.clock.now())
        )

    def get_court_availability_calendar(
        self,
        court_id: str,
        from_date: str | date,
        to_date: str | date
    ) -> dict[date, AvailabilityResult]:
        """Free slots per day, from today at the earliest up to the advance booking limit."""
        from_date, to_date = parse_date(from_date), parse_date(to_date)
        if from_date > to_date:
            raise ValidationError(
                "from_date must not be after to_date",
                {"from_date": from_date.isoformat(), "to_date": to_date.isoformat()}
            )
        court = self._court(court_id)
        today = self.clock.now().astimezone(self.availability.court_tz(court)).date()
        first = max(from_date, today)
        last = min(to_date, today + timedelta(days=court.policy.max_advance_booking_days))

        calendar: dict[date, AvailabilityResult] = {}
        day = first
        while day <= last:
            calendar[day] = self.get_available_slots(court.id, day)
            day += timedelta(days=1)
        return calendar
