"""Error codes for the court scheduling engine."""

from enum import Enum

class ErrorCode(Enum):
    """Enumeration of all possible error codes."""
    # Input Errors
    INVALID_INTERVAL = "invalid_interval"
    VALIDATION_FAILED = "validation_failed"

    # Policy Errors
    POLICY_VIOLATION = "policy_violation"

    # Availability Errors
    SLOT_UNAVAILABLE = "slot_unavailable"
    SLOT_NO_LONGER_AVAILABLE = "slot_no_longer_available"

    # Lifecycle Errors
    INVALID_TRANSITION = "invalid_transition"
    TOO_EARLY = "too_early"
    TOO_LATE = "too_late"
    CANNOT_CANCEL_PAST_RESERVATION = "cannot_cancel_past_reservation"

    # Payment Errors
    PAYMENT_NOT_CAPTURED = "payment_not_captured"

    # Lookup Errors
    RESERVATION_NOT_FOUND = "reservation_not_found"
    COURT_NOT_FOUND = "court_not_found"
    BLOCK_NOT_FOUND = "block_not_found"

    # Configuration Errors
    CONFIG_INVALID = "config_invalid"
    CONFIG_MISSING = "config_missing"
