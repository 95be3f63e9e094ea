"""Configuration validation utilities."""

import re
from typing import Any

from courtsched.utils.timezone_utils import TimezoneManager


TIME_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$')
# Closing and end times may also be midnight at the end of the day
END_TIME_PATTERN = re.compile(r'^(([01]?[0-9]|2[0-3]):[0-5][0-9]|24:00)$')

class ConfigValidationError(Exception):
    """Configuration validation error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}

def _validate_time(court_id: str, field: str, value: Any, pattern: re.Pattern[str] = TIME_PATTERN) -> None:
    if not isinstance(value, str) or not pattern.match(value):
        raise ConfigValidationError(
            f"Invalid time for {field} in court {court_id}",
            {"court": court_id, "field": field, "value": value}
        )

def validate_operating_hours(court_id: str, hours: Any) -> None:
    """Validate a weekly operating-hours table."""
    if not isinstance(hours, dict) or not hours:
        raise ConfigValidationError(
            f"Missing operating hours for court {court_id}",
            {"court": court_id}
        )

    for day, row in hours.items():
        if str(day) != 'default' and str(day) not in {str(d) for d in range(7)}:
            raise ConfigValidationError(
                f"Unknown weekday {day} in operating hours of court {court_id}",
                {"court": court_id, "day": day}
            )
        if not isinstance(row, dict):
            raise ConfigValidationError(
                f"Invalid operating hours row for day {day} of court {court_id}",
                {"court": court_id, "day": day}
            )
        if not row.get('is_open', True):
            continue
        _validate_time(court_id, f"operating_hours.{day}.open", row.get('open'))
        _validate_time(court_id, f"operating_hours.{day}.close", row.get('close'), END_TIME_PATTERN)

def validate_court_config(court_id: str, court_config: Any) -> None:
    """Validate court configuration."""
    if not isinstance(court_config, dict):
        raise ConfigValidationError(
            f"Invalid court configuration for {court_id}",
            {"court": court_id, "config_type": type(court_config).__name__}
        )

    policy = court_config.get('policy')
    if not isinstance(policy, dict):
        raise ConfigValidationError(
            f"Missing policy in court configuration for {court_id}",
            {"court": court_id}
        )

    required_fields = ["operating_hours", "hourly_rate"]
    missing_fields = [field for field in required_fields if field not in policy]
    if missing_fields:
        raise ConfigValidationError(
            f"Missing required policy fields for court {court_id}",
            {"court": court_id, "missing_fields": missing_fields}
        )

    if 'timezone' in court_config and not TimezoneManager.is_valid_timezone(str(court_config['timezone'])):
        raise ConfigValidationError(
            f"Unknown timezone for court {court_id}",
            {"court": court_id, "timezone": court_config['timezone']}
        )

    validate_operating_hours(court_id, policy['operating_hours'])

    for field in ('min_booking_minutes', 'max_booking_minutes', 'granularity_minutes', 'max_advance_booking_days'):
        if field in policy and (not isinstance(policy[field], int) or policy[field] <= 0):
            raise ConfigValidationError(
                f"{field} must be a positive integer for court {court_id}",
                {"court": court_id, "field": field, "value": policy[field]}
            )

def validate_reservation_entry(entry: Any, courts: dict[str, Any]) -> None:
    """Validate a seed reservation or block entry."""
    if not isinstance(entry, dict):
        raise ConfigValidationError(
            "Invalid reservation entry",
            {"config_type": type(entry).__name__}
        )

    required_fields = ["id", "court_id", "date", "start", "end"]
    missing_fields = [field for field in required_fields if field not in entry]
    if missing_fields:
        raise ConfigValidationError(
            "Missing required fields in reservation entry",
            {"entry": entry, "missing_fields": missing_fields}
        )

    if str(entry['court_id']) not in courts:
        raise ConfigValidationError(
            f"Unknown court {entry['court_id']} in reservation entry",
            {"court": entry['court_id']}
        )

    _validate_time(str(entry['court_id']), 'start', entry['start'])
    _validate_time(str(entry['court_id']), 'end', entry['end'], END_TIME_PATTERN)

def validate_config(courts: dict[str, Any], reservations: list[Any], blocks: list[Any]) -> None:
    """Validate every court, reservation and block entry."""
    for court_id, court_config in courts.items():
        validate_court_config(str(court_id), court_config)
    for entry in reservations:
        validate_reservation_entry(entry, courts)
    for entry in blocks:
        validate_reservation_entry(entry, courts)
