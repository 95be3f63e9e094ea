"""Tests for configuration validation."""

import pytest

from courtsched.config.validation import (
    ConfigValidationError,
    validate_config,
    validate_court_config,
    validate_operating_hours,
    validate_reservation_entry,
)

POLICY = {
    'operating_hours': {'default': {'open': '06:00', 'close': '22:00'}},
    'hourly_rate': '300.00',
}


class TestValidation:
    def test_valid_config(self):
        courts = {'center': {'policy': POLICY}}
        entry = {'id': 'x', 'court_id': 'center', 'date': '2026-10-21', 'start': '10:00', 'end': '11:00'}
        validate_config(courts, [entry], [entry])

    @pytest.mark.parametrize("hours", [
        {},
        {'7': {'open': '06:00', 'close': '22:00'}},
        {'1': {'open': '6am', 'close': '22:00'}},
        {'1': 'closed'},
    ])
    def test_bad_operating_hours(self, hours):
        with pytest.raises(ConfigValidationError):
            validate_operating_hours('center', hours)

    def test_midnight_close(self):
        validate_operating_hours('center', {'default': {'open': '18:00', 'close': '24:00'}})
        with pytest.raises(ConfigValidationError):
            validate_operating_hours('center', {'default': {'open': '24:00', 'close': '24:00'}})

    def test_reservation_may_end_at_midnight(self):
        entry = {'id': 'x', 'court_id': 'center', 'date': '2026-10-21', 'start': '23:00', 'end': '24:00'}
        validate_reservation_entry(entry, {'center': {}})
        with pytest.raises(ConfigValidationError):
            validate_reservation_entry({**entry, 'start': '24:00'}, {'center': {}})

    def test_closed_rows_need_no_times(self):
        validate_operating_hours('center', {'0': {'is_open': False}})

    def test_unquoted_times_are_rejected(self):
        # YAML reads an unquoted 06:00 as the integer 360
        with pytest.raises(ConfigValidationError):
            validate_operating_hours('center', {'default': {'open': 360, 'close': '22:00'}})

    def test_policy_integers_must_be_positive(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_court_config('center', {'policy': {**POLICY, 'granularity_minutes': 0}})
        assert exc_info.value.details['field'] == 'granularity_minutes'

    def test_reservation_for_unknown_court(self):
        entry = {'id': 'x', 'court_id': 'nope', 'date': '2026-10-21', 'start': '10:00', 'end': '11:00'}
        with pytest.raises(ConfigValidationError):
            validate_reservation_entry(entry, {'center': {}})

    def test_reservation_missing_fields(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_reservation_entry({'id': 'x', 'court_id': 'center'}, {'center': {}})
        assert exc_info.value.details['missing_fields'] == ['date', 'start', 'end']

    def test_unknown_court_timezone(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            validate_court_config('center', {'policy': POLICY, 'timezone': 'Mars/Olympus'})
        assert exc_info.value.details['timezone'] == 'Mars/Olympus'
