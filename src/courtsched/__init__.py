"""
Court reservation scheduling engine.
"""

__version__ = '0.1.0'

from .exceptions import (
    BlockNotFoundError,
    CannotCancelPastReservationError,
    ConfigError,
    CourtNotFoundError,
    InvalidIntervalError,
    InvalidTransitionError,
    PaymentNotCapturedError,
    PolicyViolationError,
    ReservationNotFoundError,
    SchedulingError,
    SlotNoLongerAvailableError,
    SlotUnavailableError,
    TooEarlyError,
    TooLateError,
    ValidationError,
)

__all__ = [
    'BlockNotFoundError',
    'CannotCancelPastReservationError',
    'ConfigError',
    'CourtNotFoundError',
    'InvalidIntervalError',
    'InvalidTransitionError',
    'PaymentNotCapturedError',
    'PolicyViolationError',
    'ReservationNotFoundError',
    'SchedulingError',
    'SlotNoLongerAvailableError',
    'SlotUnavailableError',
    'TooEarlyError',
    'TooLateError',
    'ValidationError',
]
