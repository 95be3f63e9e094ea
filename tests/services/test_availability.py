"""Tests for the availability calculator."""

from datetime import datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from courtsched.exceptions import PolicyViolationError
from courtsched.models.court import DayHours
from courtsched.models.reservation import CourtBlock, ReservationStatus
from courtsched.models.time_interval import TimeInterval, is_within, overlaps
from courtsched.services.availability import AvailabilityCalculator, PolicyRule, UnavailableReason
from courtsched.services.conflicts import ADVANCE_BOOKING, DURATION, OPERATING_HOURS

TZ = ZoneInfo("America/Mexico_City")


@pytest.fixture
def calculator():
    return AvailabilityCalculator()

def windows(result) -> list[str]:
    return [str(slot.interval) for slot in result]


class TestComputeFreeSlots:
    """Free slot listing."""

    def test_slots_around_existing_reservation(self, calculator, court, make_reservation, day, now):
        existing = [make_reservation("10:00", "11:30")]

        result = calculator.compute_free_slots(court, day, existing, now=now)
        listed = windows(result)

        assert result.reason is None
        assert listed[0] == "06:00-07:00"
        assert "08:30-10:00" in listed
        assert "09:00-10:00" in listed
        assert not any(overlaps(slot.interval, TimeInterval.parse("10:00", "11:30")) for slot in result)
        after = [slot for slot in result if slot.interval.start >= time(10)]
        assert str(after[0].interval) == "11:30-12:30"

    def test_slot_correctness(self, calculator, court, make_reservation, day, now):
        existing = [
            make_reservation("07:00", "08:00", "a"),
            make_reservation("12:30", "15:00", "b", ReservationStatus.PENDING),
            make_reservation("18:00", "19:00", "c", ReservationStatus.CHECKED_IN),
        ]
        window = court.policy.operating_window(day)

        result = calculator.compute_free_slots(court, day, existing, now=now)

        assert result.slots
        for slot in result:
            assert is_within(slot.interval, window)
            assert 60 <= slot.duration_minutes <= 180
            assert not any(overlaps(slot.interval, r.interval) for r in existing)

    def test_ordered_by_start_then_end(self, calculator, court, day, now):
        result = calculator.compute_free_slots(court, day, [], now=now)
        keys = [(slot.interval.start, slot.interval.end) for slot in result]
        assert keys == sorted(keys)
        assert windows(result)[:3] == ["06:00-07:00", "06:00-07:30", "06:00-08:00"]

    def test_cancelled_reservations_free_their_window(self, calculator, court, make_reservation, day, now):
        existing = [make_reservation("10:00", "11:00", status=ReservationStatus.CANCELLED)]
        assert "10:00-11:00" in windows(calculator.compute_free_slots(court, day, existing, now=now))

    def test_custom_step(self, calculator, court, day, now):
        result = calculator.compute_free_slots(court, day, [], step_minutes=60, now=now)
        assert {slot.interval.start.minute for slot in result} == {0}
        assert {slot.duration_minutes for slot in result} == {60, 120, 180}

    def test_blocks_are_removed(self, calculator, court, day, now):
        blocks = [CourtBlock("b1", court.id, day, TimeInterval.parse("06:00", "12:00"))]
        result = calculator.compute_free_slots(court, day, [], now=now, blocks=blocks)
        assert windows(result)[0] == "12:00-13:00"

    def test_closed_day(self, calculator, make_court, day, now):
        court = make_court(operating_hours={0: DayHours(True, time(8), time(20))})
        result = calculator.compute_free_slots(court, day, [], now=now)
        assert not result.is_available
        assert result.reason == UnavailableReason.CLOSED_DAY

    def test_too_far_in_advance(self, calculator, court, now):
        limit = now.date() + timedelta(days=30)
        assert calculator.compute_free_slots(court, limit, [], now=now).is_available

        result = calculator.compute_free_slots(court, limit + timedelta(days=1), [], now=now)
        assert result.slots == ()
        assert result.reason == UnavailableReason.TOO_FAR_IN_ADVANCE

    def test_past_date(self, calculator, court, now):
        result = calculator.compute_free_slots(court, now.date() - timedelta(days=1), [], now=now)
        assert result.reason == UnavailableReason.PAST_DATE

    def test_fully_booked(self, calculator, court, make_reservation, day, now):
        existing = [
            make_reservation("06:00", "09:00", "a"),
            make_reservation("09:00", "12:00", "b"),
            make_reservation("12:00", "15:00", "c"),
            make_reservation("15:00", "18:00", "d"),
            make_reservation("18:00", "21:00", "e"),
            make_reservation("21:00", "21:30", "f"),
        ]
        result = calculator.compute_free_slots(court, day, existing, now=now)
        assert result.reason == UnavailableReason.FULLY_BOOKED

    def test_today_drops_started_slots(self, calculator, court, day):
        now = datetime.combine(day, time(10, 15), tzinfo=TZ)
        result = calculator.compute_free_slots(court, day, [], now=now)
        assert windows(result)[0] == "10:30-11:30"

    def test_now_in_other_zone_is_converted(self, calculator, court, day):
        # 16:15 UTC is 10:15 in Mexico City
        now = datetime.combine(day, time(16, 15), tzinfo=ZoneInfo("UTC"))
        result = calculator.compute_free_slots(court, day, [], now=now)
        assert windows(result)[0] == "10:30-11:30"

    def test_slots_run_to_midnight(self, calculator, make_court, day, now):
        court = make_court(operating_hours={weekday: DayHours(True, time(20), time(0)) for weekday in range(7)})
        result = calculator.compute_free_slots(court, day, [], now=now)
        assert windows(result)[-1] == "23:00-24:00"
        assert result.slots[-1].interval.end_minutes == 1440

    def test_slots_are_priced(self, calculator, make_court, day, now):
        court = make_court(peak_hour_rate=Decimal('400.00'))
        result = calculator.compute_free_slots(court, day, [], now=now)
        prices = {str(slot.interval): slot.price for slot in result}
        assert prices["10:00-11:30"] == Decimal('450.00')
        assert prices["18:00-19:00"] == Decimal('400.00')
        # 06:00 falls in the early peak window
        assert result.slots[0].to_dict()["price"] == "400.00"

    def test_idempotent(self, calculator, court, make_reservation, day, now):
        existing = [make_reservation("10:00", "11:30")]
        first = calculator.compute_free_slots(court, day, existing, now=now)
        second = calculator.compute_free_slots(court, day, existing, now=now)
        assert first == second


class TestIsFree:
    def test_is_free(self, calculator, court, make_reservation, day):
        existing = [make_reservation("10:00", "11:00")]
        assert calculator.is_free(court, day, TimeInterval.parse("11:00", "12:00"), existing)
        assert not calculator.is_free(court, day, TimeInterval.parse("10:30", "11:30"), existing)

    def test_blocks_make_window_busy(self, calculator, court, day):
        blocks = [CourtBlock("b1", court.id, day, TimeInterval.parse("12:00", "14:00"))]
        assert not calculator.is_free(court, day, TimeInterval.parse("13:00", "14:00"), [], blocks)


class TestValidateRequest:
    """Booking-time policy checks."""

    @pytest.mark.parametrize("start,end,rule", [
        ("10:00", "10:30", PolicyRule.DURATION_TOO_SHORT),
        ("10:00", "14:00", PolicyRule.DURATION_TOO_LONG),
        ("05:00", "06:30", PolicyRule.OUTSIDE_OPERATING_HOURS),
        ("21:30", "22:30", PolicyRule.OUTSIDE_OPERATING_HOURS),
    ])
    def test_rules(self, calculator, court, day, now, start, end, rule):
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(court, day, TimeInterval.parse(start, end), now)
        assert exc_info.value.rule == rule.value
        assert exc_info.value.details["rule"] == rule.value

    def test_valid_request(self, calculator, court, day, now):
        calculator.validate_request(court, day, TimeInterval.parse("10:00", "11:00"), now)

    def test_closed_day(self, calculator, make_court, day, now):
        court = make_court(operating_hours={})
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(court, day, TimeInterval.parse("10:00", "11:00"), now)
        assert exc_info.value.rule == PolicyRule.CLOSED_DAY.value

    def test_start_in_past(self, calculator, court, now):
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(court, now.date(), TimeInterval.parse("07:00", "08:00"), now)
        assert exc_info.value.rule == PolicyRule.START_IN_PAST.value

    def test_too_far_in_advance(self, calculator, court, now):
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(
                court, now.date() + timedelta(days=31), TimeInterval.parse("10:00", "11:00"), now
            )
        assert exc_info.value.rule == PolicyRule.TOO_FAR_IN_ADVANCE.value

    def test_inactive_court(self, calculator, court, day, now):
        court.is_active = False
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(court, day, TimeInterval.parse("10:00", "11:00"), now)
        assert exc_info.value.rule == PolicyRule.COURT_INACTIVE.value

    def test_midnight_close_accepts_last_hour(self, calculator, make_court, day, now):
        court = make_court(operating_hours={weekday: DayHours(True, time(20), time(0)) for weekday in range(7)})
        calculator.validate_request(court, day, TimeInterval.parse("23:00", "24:00"), now)

    def test_first_violation_is_raised(self, calculator, court, day, now):
        with pytest.raises(PolicyViolationError) as exc_info:
            calculator.validate_request(court, day, TimeInterval.parse("21:45", "22:00"), now)
        assert exc_info.value.rule == PolicyRule.DURATION_TOO_SHORT.value


class TestPolicyViolations:
    """Every broken rule, collected for the operator diagnostic."""

    def test_collects_every_rule(self, calculator, court, now):
        far = now.date() + timedelta(days=40)
        violations = calculator.policy_violations(court, far, TimeInterval.parse("21:45", "22:15"), now)
        assert [v.rule for v in violations] == [
            PolicyRule.DURATION_TOO_SHORT.value,
            PolicyRule.OUTSIDE_OPERATING_HOURS.value,
            PolicyRule.TOO_FAR_IN_ADVANCE.value,
        ]

    def test_none_for_valid_request(self, calculator, court, day, now):
        assert calculator.policy_violations(court, day, TimeInterval.parse("10:00", "11:00"), now) == []

    def test_conflict_kinds(self, calculator, court, now):
        far = now.date() + timedelta(days=40)
        details = calculator.policy_conflicts(court, far, TimeInterval.parse("21:00", "23:00"), now)
        assert [(d.kind, d.rule) for d in details] == [
            (OPERATING_HOURS, PolicyRule.OUTSIDE_OPERATING_HOURS.value),
            (ADVANCE_BOOKING, PolicyRule.TOO_FAR_IN_ADVANCE.value),
        ]
        assert details[0].reason == "Booking time is outside operating hours (06:00-22:00)"
        assert all(d.window == TimeInterval.parse("21:00", "23:00") and d.overlap_minutes == 0 for d in details)

    def test_duration_kind(self, calculator, court, day, now):
        details = calculator.policy_conflicts(court, day, TimeInterval.parse("10:00", "14:00"), now)
        assert [d.kind for d in details] == [DURATION]
        assert details[0].to_dict()["rule"] == "duration_too_long"
