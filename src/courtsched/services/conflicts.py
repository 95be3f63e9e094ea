"""
Conflict detection between a candidate booking and a court's schedule.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Any

from courtsched.models.reservation import CourtBlock, Reservation
from courtsched.models.time_interval import TimeInterval, overlap_minutes, overlaps

RESERVATION = 'reservation'
BLOCK = 'block'
# Policy kinds; their window is the requested one and they overlap nothing
OPERATING_HOURS = 'operating_hours'
ADVANCE_BOOKING = 'advance_booking'
DURATION = 'duration'
POLICY = 'policy'


@dataclass(frozen=True)
class ConflictDetail:
    """One problem with a requested window.

    Overlaps carry the window and reference of the blocking entry but never
    the identity of whoever booked it. Policy entries carry the broken
    ``rule`` and its message in ``reason``.
    """
    kind: str
    window: TimeInterval
    overlap_minutes: int
    reservation_id: str | None = None
    status: str | None = None
    block_id: str | None = None
    reason: str | None = None
    rule: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'kind': self.kind,
            'window': str(self.window),
            'overlap_minutes': self.overlap_minutes,
            'reservation_id': self.reservation_id,
            'status': self.status,
            'block_id': self.block_id,
            'reason': self.reason,
            'rule': self.rule,
        }


def find_conflicts(candidate: Reservation, existing: Iterable[Reservation]) -> list[Reservation]:
    """Active reservations on the candidate's court and date that overlap it.

    Cancelled, completed and no-show reservations never block. The candidate
    itself is ignored so a stored reservation can be re-checked.
    """
    return [
        other for other in existing
        if other.id != candidate.id
        and other.court_id == candidate.court_id
        and other.date == candidate.date
        and other.status.blocks_slot
        and overlaps(other.interval, candidate.interval)
    ]

def find_block_conflicts(
    court_id: str,
    day: date,
    interval: TimeInterval,
    blocks: Iterable[CourtBlock]
) -> list[CourtBlock]:
    """Schedule blocks on the court and date that overlap ``interval``."""
    return [
        block for block in blocks
        if block.court_id == court_id and block.date == day and overlaps(block.interval, interval)
    ]

def detect_conflicts(
    court_id: str,
    day: date,
    interval: TimeInterval,
    existing: Iterable[Reservation],
    blocks: Iterable[CourtBlock] = (),
    policy: Iterable[ConflictDetail] = ()
) -> list[ConflictDetail]:
    """Read-only diagnostic: policy problems first, then every overlap with how many minutes it costs."""
    candidate = Reservation(id='', court_id=court_id, user_id='', date=day, interval=interval)

    details = [
        ConflictDetail(
            kind=RESERVATION,
            window=other.interval,
            overlap_minutes=overlap_minutes(other.interval, interval),
            reservation_id=other.id,
            status=other.status.value,
        )
        for other in find_conflicts(candidate, existing)
    ]
    details.extend(
        ConflictDetail(
            kind=BLOCK,
            window=block.interval,
            overlap_minutes=overlap_minutes(block.interval, interval),
            block_id=block.id,
            reason=block.label,
        )
        for block in find_block_conflicts(court_id, day, interval, blocks)
    )
    return list(policy) + sorted(details, key=lambda detail: (detail.window, detail.kind))
