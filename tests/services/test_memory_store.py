"""Tests for the in-memory store."""

from courtsched.models.reservation import CourtBlock, ReservationStatus
from courtsched.models.time_interval import TimeInterval
from courtsched.services.memory_store import InMemoryStore


class TestInMemoryStore:
    def test_reads_return_copies(self, store, make_reservation, day):
        store.save(make_reservation("10:00", "11:00"))

        loaded = store.load_by_id("r1")
        loaded.status = ReservationStatus.CANCELLED

        assert store.load_by_id("r1").status == ReservationStatus.CONFIRMED
        assert store.load_reservations("c1", day)[0].status == ReservationStatus.CONFIRMED

    def test_active_reservations_skip_terminal_rows(self, store, make_reservation, day):
        store.save(make_reservation("10:00", "11:00", "a"))
        store.save(make_reservation("12:00", "13:00", "b", ReservationStatus.CANCELLED))
        assert [r.id for r in store.load_active_reservations("c1", day)] == ["a"]

    def test_append_if_no_conflict(self, store, make_reservation):
        first = make_reservation("10:00", "11:00", "a", ReservationStatus.PENDING)
        second = make_reservation("10:30", "11:30", "b", ReservationStatus.PENDING)

        assert store.append_if_no_conflict(first) == []
        conflicts = store.append_if_no_conflict(second)

        assert [r.id for r in conflicts] == ["a"]
        assert store.load_by_id("b") is None
        assert [r.id for r in store.all_reservations()] == ["a"]

    def test_ids_skip_existing_rows(self, court, make_reservation):
        store = InMemoryStore([court], [make_reservation("10:00", "11:00", "R00001")])
        assert store.next_reservation_id() == "R00002"
        assert store.next_block_id() == "B00001"

    def test_blocks(self, store, day):
        block = CourtBlock("B1", "c1", day, TimeInterval.parse("12:00", "14:00"))
        store.save_block(block)

        assert store.load_blocks("c1", day) == [block]
        assert store.delete_block("B1")
        assert not store.delete_block("B1")
        assert store.load_blocks("c1", day) == []

    def test_courts(self, store, make_court):
        store.save_court(make_court("a0"))
        assert [c.id for c in store.list_courts()] == ["a0", "c1"]
        assert store.load_court("missing") is None
        assert store.load_court_policy("c1") is store.load_court("c1").policy

    def test_user_reservations(self, store, make_reservation):
        store.save(make_reservation("10:00", "11:00", "a", user_id="u1"))
        store.save(make_reservation("12:00", "13:00", "b", user_id="u2", court_id="c2"))
        store.save(make_reservation("14:00", "15:00", "c", user_id="u1", court_id="c2"))

        assert sorted(r.id for r in store.load_user_reservations("u1")) == ["a", "c"]
        assert store.load_user_reservations("nobody") == []
