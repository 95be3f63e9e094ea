"""Centralized error definitions for the court scheduling engine."""

import logging
from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any
from typing import TypeVar

from courtsched.config.error_aggregator import aggregate_error
from courtsched.error_codes import ErrorCode


logger = logging.getLogger(__name__)

T = TypeVar('T')

@dataclass
class SchedulingError(Exception):
    """Base exception for all scheduling errors."""
    message: str
    code: ErrorCode
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Code: {self.code.value}, Details: {self.details})"
        return f"{self.message} (Code: {self.code.value})"

class InvalidIntervalError(SchedulingError):
    """Malformed start/end pair."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.INVALID_INTERVAL, details)

class ValidationError(SchedulingError):
    """Malformed request input."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_FAILED, details)

class PolicyViolationError(SchedulingError):
    """Request breaks the court policy (duration, hours, advance window)."""
    def __init__(self, message: str, rule: str, details: dict[str, Any] | None = None):
        details = dict(details or {})
        details["rule"] = rule
        super().__init__(message, ErrorCode.POLICY_VIOLATION, details)
        self.rule = rule

class SlotUnavailableError(SchedulingError):
    """Requested window overlaps an active reservation or block.

    Only the conflicting windows are exposed, never who holds them.
    """
    def __init__(
        self,
        message: str,
        conflicting_windows: list[str],
        code: ErrorCode = ErrorCode.SLOT_UNAVAILABLE,
        details: dict[str, Any] | None = None
    ):
        details = dict(details or {})
        details["conflicting_windows"] = list(conflicting_windows)
        super().__init__(message, code, details)
        self.conflicting_windows = list(conflicting_windows)

class SlotNoLongerAvailableError(SlotUnavailableError):
    """Slot was secured by another reservation before this one was confirmed."""
    def __init__(self, message: str, conflicting_windows: list[str], result: Any = None):
        super().__init__(message, conflicting_windows, code=ErrorCode.SLOT_NO_LONGER_AVAILABLE)
        self.result = result

class InvalidTransitionError(SchedulingError):
    """Lifecycle event attempted from a state that does not allow it."""
    def __init__(self, message: str, status: str, event: str):
        super().__init__(message, ErrorCode.INVALID_TRANSITION, {"status": status, "event": event})
        self.status = status
        self.event = event

class TooEarlyError(SchedulingError):
    """Check-in attempted before the grace window opens."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.TOO_EARLY, details)

class TooLateError(SchedulingError):
    """Check-in attempted after the reservation ended."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.TOO_LATE, details)

class CannotCancelPastReservationError(SchedulingError):
    """Cancellation attempted at or after the reservation start."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CANNOT_CANCEL_PAST_RESERVATION, details)

class PaymentNotCapturedError(SchedulingError):
    """Payment collaborator did not report a sufficient successful capture."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.PAYMENT_NOT_CAPTURED, details)

class ReservationNotFoundError(SchedulingError):
    """No reservation with the given id."""
    def __init__(self, reservation_id: Any):
        super().__init__(
            f"Reservation {reservation_id} not found",
            ErrorCode.RESERVATION_NOT_FOUND,
            {"reservation_id": reservation_id}
        )

class CourtNotFoundError(SchedulingError):
    """No court with the given id."""
    def __init__(self, court_id: Any):
        super().__init__(f"Court {court_id} not found", ErrorCode.COURT_NOT_FOUND, {"court_id": court_id})

class BlockNotFoundError(SchedulingError):
    """No schedule block with the given id."""
    def __init__(self, block_id: Any):
        super().__init__(f"Schedule block {block_id} not found", ErrorCode.BLOCK_NOT_FOUND, {"block_id": block_id})

class ConfigError(SchedulingError):
    """Configuration error."""
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIG_INVALID, details)

class PolicyConfigError(ConfigError):
    """Court policy breaks its own invariants."""
    pass

@contextmanager
def handle_errors(
    error_type: type[SchedulingError],
    service: str,
    operation: str,
    fallback: Callable[[], T] | None = None
) -> Iterator[None]:
    """Handle errors in a context manager.

    Expected scheduling errors are recorded with the error aggregator and
    re-raised unchanged. Unexpected errors are also logged with traceback.

    Args:
        error_type: The error type to catch
        service: The service name
        operation: The operation name
        fallback: Optional fallback to call instead of re-raising
    """
    try:
        yield
    except error_type as e:
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
    except Exception as e:
        logger.error(
            f"Unexpected error in {service}.{operation}: {e}",
            exc_info=True
        )
        aggregate_error(str(e), service, e.__traceback__)

        if fallback:
            fallback()
            return
        raise
