"""Service implementations."""

from .availability import AvailabilityCalculator
from .lifecycle import ReservationLifecycle
from .memory_store import InMemoryStore
from .scheduling_service import SchedulingService


__all__ = [
    'AvailabilityCalculator',
    'InMemoryStore',
    'ReservationLifecycle',
    'SchedulingService',
]
