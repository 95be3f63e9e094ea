"""Tests for court policies."""

from datetime import date, time
from decimal import Decimal

import pytest

from courtsched.exceptions import PolicyConfigError
from courtsched.models.court import (
    CancellationPolicy,
    Court,
    CourtPolicy,
    DayHours,
    RefundTier,
    weekday_key,
)
from courtsched.models.time_interval import TimeInterval


class TestWeekdayKey:
    def test_sunday_is_zero(self):
        assert weekday_key(date(2026, 10, 18)) == 0  # Sunday
        assert weekday_key(date(2026, 10, 19)) == 1  # Monday
        assert weekday_key(date(2026, 10, 24)) == 6  # Saturday


class TestCourtPolicy:
    """Policy invariants and lookups."""

    def test_missing_weekday_is_closed(self):
        policy = CourtPolicy(operating_hours={1: DayHours(True, time(7), time(21))}, hourly_rate=100)
        assert policy.operating_window(date(2026, 10, 19)) == TimeInterval(time(7), time(21))
        assert policy.operating_window(date(2026, 10, 20)) is None

    def test_min_must_not_exceed_max(self):
        with pytest.raises(PolicyConfigError):
            CourtPolicy(operating_hours={}, hourly_rate=100, min_booking_minutes=120, max_booking_minutes=60)

    def test_durations_align_with_granularity(self):
        with pytest.raises(PolicyConfigError):
            CourtPolicy(operating_hours={}, hourly_rate=100, min_booking_minutes=45)

    def test_open_day_requires_ordered_times(self):
        with pytest.raises(PolicyConfigError):
            DayHours(True, time(22), time(6))

    def test_negative_rate_rejected(self):
        with pytest.raises(PolicyConfigError):
            CourtPolicy(operating_hours={}, hourly_rate=-1)

    def test_rate_lookup_prefers_weekend_then_peak(self):
        policy = CourtPolicy(
            operating_hours={},
            hourly_rate='300',
            peak_hour_rate='400',
            weekend_rate='450'
        )
        wednesday, saturday = date(2026, 10, 21), date(2026, 10, 24)
        assert policy.rate_for(wednesday, time(10)) == Decimal('300')
        assert policy.rate_for(wednesday, time(18, 30)) == Decimal('400')
        assert policy.rate_for(wednesday, time(7)) == Decimal('400')
        assert policy.rate_for(saturday, time(18, 30)) == Decimal('450')

    def test_amount_is_rate_times_hours(self):
        policy = CourtPolicy(operating_hours={}, hourly_rate='300')
        amount = policy.amount_for(date(2026, 10, 21), TimeInterval(time(10), time(11, 30)))
        assert amount == Decimal('450.00')

    def test_from_dict_with_default_row(self):
        policy = CourtPolicy.from_dict({
            'operating_hours': {
                'default': {'open': '06:00', 'close': '22:00'},
                0: {'is_open': False},
            },
            'hourly_rate': '250.00',
            'max_booking_minutes': 120,
            'peak_windows': [['17:00', '21:00']],
        })
        assert policy.operating_window(date(2026, 10, 18)) is None
        assert policy.operating_window(date(2026, 10, 19)) == TimeInterval(time(6), time(22))
        assert policy.max_booking_minutes == 120
        assert policy.peak_windows == (TimeInterval(time(17), time(21)),)
        assert policy.hourly_rate == Decimal('250.00')

    def test_close_at_midnight(self):
        policy = CourtPolicy.from_dict({
            'operating_hours': {'default': {'open': '18:00', 'close': '24:00'}},
            'hourly_rate': '250.00',
            'peak_windows': [['20:00', '24:00']],
        })
        window = policy.operating_window(date(2026, 10, 21))
        assert str(window) == "18:00-24:00"
        assert window.end_minutes == 1440
        assert policy.is_peak(time(23, 30))
        assert not policy.is_peak(time(19, 30))


class TestCancellationPolicy:
    """Refund tiers."""

    @pytest.mark.parametrize("hours,expected", [
        (30, 100),
        (24, 100),
        (23.9, 50),
        (2, 50),
        (1, 0),
        (0.1, 0),
    ])
    def test_default_tiers(self, hours, expected):
        assert CancellationPolicy().refund_percentage(hours) == expected

    def test_tiers_sorted_regardless_of_input_order(self):
        policy = CancellationPolicy(tiers=(RefundTier(2, 25), RefundTier(48, 100), RefundTier(12, 75)))
        assert [tier.threshold_hours for tier in policy.tiers] == [48, 12, 2]
        assert policy.refund_percentage(13) == 75

    def test_invalid_percentage(self):
        with pytest.raises(PolicyConfigError):
            RefundTier(24, 120)

    def test_from_dict(self):
        policy = CancellationPolicy.from_dict({
            'description': 'Strict',
            'tiers': [{'threshold_hours': 48, 'refund_percentage': 100}],
        })
        assert policy.description == 'Strict'
        assert policy.refund_percentage(47) == 0


class TestCourt:
    def test_from_dict(self):
        court = Court.from_dict('p1', {
            'name': 'Padel 1',
            'owner': 'club-9',
            'policy': {
                'operating_hours': {'default': {'open': '07:00', 'close': '23:00'}},
                'hourly_rate': 200,
            },
            'metadata': {'indoor': True},
        }, default_timezone='Europe/Madrid')
        assert court.id == 'p1'
        assert court.timezone == 'Europe/Madrid'
        assert court.owner_ref == 'club-9'
        assert court.is_active
        assert court.metadata == {'indoor': True}
