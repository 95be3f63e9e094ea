"""Tests for conflict detection."""

from courtsched.models.reservation import CourtBlock, ReservationStatus
from courtsched.models.time_interval import TimeInterval
from courtsched.services.conflicts import (
    BLOCK,
    OPERATING_HOURS,
    RESERVATION,
    ConflictDetail,
    detect_conflicts,
    find_conflicts,
)


class TestFindConflicts:
    """Conflict detector semantics."""

    def test_overlapping_active_reservation(self, make_reservation):
        existing = make_reservation("10:00", "11:30", "r1")
        candidate = make_reservation("10:00", "11:00", "new", ReservationStatus.PENDING)
        assert find_conflicts(candidate, [existing]) == [existing]

    def test_back_to_back_is_not_a_conflict(self, make_reservation):
        existing = make_reservation("10:00", "11:00", "r1")
        candidate = make_reservation("11:00", "12:00", "new", ReservationStatus.PENDING)
        assert find_conflicts(candidate, [existing]) == []

    def test_inactive_reservations_never_block(self, make_reservation):
        existing = [
            make_reservation("10:00", "11:00", "a", ReservationStatus.CANCELLED),
            make_reservation("10:00", "11:00", "b", ReservationStatus.NO_SHOW),
            make_reservation("10:00", "11:00", "c", ReservationStatus.COMPLETED),
        ]
        candidate = make_reservation("10:00", "11:00", "new", ReservationStatus.PENDING)
        assert find_conflicts(candidate, existing) == []

    def test_pending_and_checked_in_block(self, make_reservation):
        existing = [
            make_reservation("10:00", "11:00", "a", ReservationStatus.PENDING),
            make_reservation("10:30", "12:00", "b", ReservationStatus.CHECKED_IN),
        ]
        candidate = make_reservation("10:00", "12:00", "new", ReservationStatus.PENDING)
        assert [r.id for r in find_conflicts(candidate, existing)] == ["a", "b"]

    def test_other_courts_and_self_are_ignored(self, make_reservation):
        candidate = make_reservation("10:00", "11:00", "same")
        existing = [candidate, make_reservation("10:00", "11:00", "other", court_id="c2")]
        assert find_conflicts(candidate, existing) == []


class TestDetectConflicts:
    """Operator diagnostic."""

    def test_reports_overlap_minutes_and_blocks(self, make_reservation, day):
        existing = [make_reservation("10:00", "11:30", "r1")]
        blocks = [CourtBlock("b1", "c1", day, TimeInterval.parse("12:00", "13:00"), reason="Resurfacing")]

        details = detect_conflicts("c1", day, TimeInterval.parse("11:00", "12:30"), existing, blocks)

        assert [d.kind for d in details] == [RESERVATION, BLOCK]
        assert details[0].reservation_id == "r1"
        assert details[0].overlap_minutes == 30
        assert details[0].status == "confirmed"
        assert details[1].block_id == "b1"
        assert details[1].overlap_minutes == 30
        assert details[1].reason == "Resurfacing"

    def test_details_do_not_expose_owner(self, make_reservation, day):
        existing = [make_reservation("10:00", "11:00", "r1", user_id="secret-user")]
        details = detect_conflicts("c1", day, TimeInterval.parse("10:00", "11:00"), existing)
        assert "secret-user" not in str(details[0].to_dict())

    def test_read_only(self, make_reservation, day):
        existing = [make_reservation("10:00", "11:00", "r1")]
        snapshot = [r.to_dict() for r in existing]
        detect_conflicts("c1", day, TimeInterval.parse("10:00", "11:00"), existing)
        assert [r.to_dict() for r in existing] == snapshot

    def test_policy_entries_come_first(self, make_reservation, day):
        requested = TimeInterval.parse("21:00", "23:00")
        policy = [ConflictDetail(OPERATING_HOURS, requested, 0, reason="outside", rule="outside_operating_hours")]
        existing = [make_reservation("21:00", "22:00", "r1")]

        details = detect_conflicts("c1", day, requested, existing, policy=policy)

        assert [d.kind for d in details] == [OPERATING_HOURS, RESERVATION]
        assert details[0].to_dict()["rule"] == "outside_operating_hours"
