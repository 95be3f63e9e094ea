"""
Availability calculation for a court on a date.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from courtsched.exceptions import PolicyViolationError
from courtsched.models.court import Court
from courtsched.models.reservation import CourtBlock, Reservation, Slot
from courtsched.models.time_interval import TimeInterval, is_within, subtract, to_minutes
from courtsched.services.conflicts import (
    ADVANCE_BOOKING,
    DURATION,
    OPERATING_HOURS,
    POLICY,
    ConflictDetail,
    find_block_conflicts,
    find_conflicts,
)
from courtsched.utils.logging_utils import LoggerMixin
from courtsched.utils.timezone_utils import TimezoneManager


class UnavailableReason(Enum):
    """Why a date yields no slots."""
    CLOSED_DAY = "closed_day"
    TOO_FAR_IN_ADVANCE = "too_far_in_advance"
    PAST_DATE = "past_date"
    FULLY_BOOKED = "fully_booked"


class PolicyRule(Enum):
    """Court policy rule a booking request can break."""
    DURATION_TOO_SHORT = "duration_too_short"
    DURATION_TOO_LONG = "duration_too_long"
    CLOSED_DAY = "closed_day"
    OUTSIDE_OPERATING_HOURS = "outside_operating_hours"
    TOO_FAR_IN_ADVANCE = "too_far_in_advance"
    START_IN_PAST = "start_in_past"
    COURT_INACTIVE = "court_inactive"


RULE_KINDS = {
    PolicyRule.DURATION_TOO_SHORT: DURATION,
    PolicyRule.DURATION_TOO_LONG: DURATION,
    PolicyRule.CLOSED_DAY: OPERATING_HOURS,
    PolicyRule.OUTSIDE_OPERATING_HOURS: OPERATING_HOURS,
    PolicyRule.TOO_FAR_IN_ADVANCE: ADVANCE_BOOKING,
    PolicyRule.START_IN_PAST: ADVANCE_BOOKING,
    PolicyRule.COURT_INACTIVE: POLICY,
}


@dataclass(frozen=True)
class AvailabilityResult:
    """Free slots of a court on a date, with the reason when there are none."""
    court_id: str
    date: date
    slots: tuple[Slot, ...] = field(default_factory=tuple)
    reason: UnavailableReason | None = None

    @property
    def is_available(self) -> bool:
        return bool(self.slots)

    def __iter__(self):
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)


class AvailabilityCalculator(LoggerMixin):
    """Derives free slots and point answers from a court's policy and bookings."""

    def __init__(self) -> None:
        super().__init__()
        self.set_log_context(service="availability")

    @staticmethod
    def court_tz(court: Court) -> ZoneInfo:
        return TimezoneManager(court.timezone).local_tz

    def _local_now(self, court: Court, now: datetime | None) -> datetime | None:
        if now is None:
            return None
        return TimezoneManager(court.timezone).to_local(now)

    def date_reason(self, court: Court, day: date, today: date) -> UnavailableReason | None:
        """Reason a whole date cannot be booked, or ``None``."""
        if day < today:
            return UnavailableReason.PAST_DATE
        if (day - today).days > court.policy.max_advance_booking_days:
            return UnavailableReason.TOO_FAR_IN_ADVANCE
        if court.policy.operating_window(day) is None:
            return UnavailableReason.CLOSED_DAY
        return None

    def compute_free_slots(
        self,
        court: Court,
        day: date,
        existing: Iterable[Reservation],
        step_minutes: int | None = None,
        today: date | None = None,
        now: datetime | None = None,
        blocks: Iterable[CourtBlock] = ()
    ) -> AvailabilityResult:
        """Every bookable window of the court on ``day``.

        Starts from the weekday's operating window, removes active
        reservations and schedule blocks, then walks each free gap in
        ``step_minutes`` increments emitting every window whose length is
        within the policy's duration bounds, priced from the court's rate
        table. ``today`` (or ``now``) enables
        the past-date and advance-window checks; with ``now`` on ``day``,
        windows that already started are dropped.
        """
        policy = court.policy
        step = step_minutes or policy.granularity_minutes
        if step <= 0:
            raise ValueError(f"step_minutes must be positive, got {step}")

        local_now = self._local_now(court, now)
        if today is None and local_now is not None:
            today = local_now.date()

        if today is not None:
            reason = self.date_reason(court, day, today)
        else:
            reason = UnavailableReason.CLOSED_DAY if policy.operating_window(day) is None else None
        if reason is not None:
            self.debug("No slots for date", court=court.id, date=day.isoformat(), reason=reason.value)
            return AvailabilityResult(court.id, day, (), reason)

        window = policy.operating_window(day)
        busy = [r.interval for r in existing if r.court_id == court.id and r.date == day and r.status.blocks_slot]
        busy.extend(b.interval for b in blocks if b.court_id == court.id and b.date == day)

        earliest_start = -1
        if local_now is not None and local_now.date() == day:
            earliest_start = to_minutes(local_now.time().replace(second=0, microsecond=0))

        slots: list[Slot] = []
        for gap in subtract(window, busy):
            start = gap.start_minutes
            while start + policy.min_booking_minutes <= gap.end_minutes:
                if start > earliest_start:
                    length = policy.min_booking_minutes
                    while length <= policy.max_booking_minutes and start + length <= gap.end_minutes:
                        interval = TimeInterval.from_minutes(start, start + length)
                        slots.append(Slot(court.id, day, interval, policy.amount_for(day, interval)))
                        length += step
                start += step

        self.debug("Computed free slots", court=court.id, date=day.isoformat(), count=len(slots))
        return AvailabilityResult(
            court.id,
            day,
            tuple(slots),
            None if slots else UnavailableReason.FULLY_BOOKED
        )

    def is_free(
        self,
        court: Court,
        day: date,
        interval: TimeInterval,
        existing: Iterable[Reservation],
        blocks: Iterable[CourtBlock] = ()
    ) -> bool:
        """True iff no active reservation or block overlaps ``interval``."""
        candidate = Reservation(id='', court_id=court.id, user_id='', date=day, interval=interval)
        return not find_conflicts(candidate, existing) and not find_block_conflicts(court.id, day, interval, blocks)

    def policy_violations(
        self,
        court: Court,
        day: date,
        interval: TimeInterval,
        now: datetime
    ) -> list[PolicyViolationError]:
        """Every policy rule the request breaks, in checking order."""
        policy = court.policy
        local_now = self._local_now(court, now)
        details = {"court_id": court.id, "date": day.isoformat(), "window": str(interval)}
        violations: list[PolicyViolationError] = []

        if not court.is_active:
            violations.append(PolicyViolationError(
                f"Court {court.id} is not accepting bookings", PolicyRule.COURT_INACTIVE.value, details
            ))

        minutes = interval.duration_minutes
        if minutes < policy.min_booking_minutes:
            violations.append(PolicyViolationError(
                f"Minimum booking duration is {policy.min_booking_minutes} minutes",
                PolicyRule.DURATION_TOO_SHORT.value,
                {**details, "duration_minutes": minutes}
            ))
        if minutes > policy.max_booking_minutes:
            violations.append(PolicyViolationError(
                f"Maximum booking duration is {policy.max_booking_minutes} minutes",
                PolicyRule.DURATION_TOO_LONG.value,
                {**details, "duration_minutes": minutes}
            ))

        window = policy.operating_window(day)
        if window is None:
            violations.append(PolicyViolationError("Court is closed on this day", PolicyRule.CLOSED_DAY.value, details))
        elif not is_within(interval, window):
            violations.append(PolicyViolationError(
                f"Booking time is outside operating hours ({window})",
                PolicyRule.OUTSIDE_OPERATING_HOURS.value,
                {**details, "operating_hours": str(window)}
            ))

        if interval.starts_on(day, local_now.tzinfo) <= local_now:
            violations.append(PolicyViolationError(
                "Booking must start in the future", PolicyRule.START_IN_PAST.value, details
            ))
        if (day - local_now.date()).days > policy.max_advance_booking_days:
            violations.append(PolicyViolationError(
                f"Cannot book more than {policy.max_advance_booking_days} days in advance",
                PolicyRule.TOO_FAR_IN_ADVANCE.value,
                details
            ))
        return violations

    def validate_request(self, court: Court, day: date, interval: TimeInterval, now: datetime) -> None:
        """Raise the first :class:`PolicyViolationError` the request triggers."""
        violations = self.policy_violations(court, day, interval, now)
        if violations:
            raise violations[0]

    def policy_conflicts(
        self,
        court: Court,
        day: date,
        interval: TimeInterval,
        now: datetime
    ) -> list[ConflictDetail]:
        """Policy violations as conflict details for the operator diagnostic."""
        return [
            ConflictDetail(
                kind=RULE_KINDS[PolicyRule(violation.rule)],
                window=interval,
                overlap_minutes=0,
                reason=violation.message,
                rule=violation.rule,
            )
            for violation in self.policy_violations(court, day, interval, now)
        ]
