"""
Models package for the court scheduling engine.
Contains the time interval, court and reservation types.
"""

from .court import Court, CourtPolicy
from .reservation import CourtBlock, Reservation, ReservationStatus, Slot
from .time_interval import TimeInterval

__all__ = ['Court', 'CourtBlock', 'CourtPolicy', 'Reservation', 'ReservationStatus', 'Slot', 'TimeInterval']
