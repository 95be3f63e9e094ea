"""Interfaces of the collaborators the scheduling engine calls into."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from courtsched.models.court import Court
from courtsched.models.reservation import CourtBlock, Reservation

if TYPE_CHECKING:
    from courtsched.services.lifecycle import AnalyticsEvent, Notification


@dataclass(frozen=True)
class PaymentResult:
    """What the engine needs to know about a capture or refund."""
    success: bool
    amount: Decimal
    reference: str | None = None


@runtime_checkable
class Clock(Protocol):
    """Source of the current time; always timezone-aware."""

    def now(self) -> datetime:
        ...


class PersistenceStore(ABC):
    """Storage for courts, reservations and schedule blocks.

    ``save`` must be atomic per reservation row. Writers that can run in
    several processes must additionally make ``append_if_no_conflict``
    atomic for a ``(court_id, date)`` key.
    """

    @abstractmethod
    def load_court(self, court_id: str) -> Court | None:
        """Court with its policy, or ``None``."""

    @abstractmethod
    def save_court(self, court: Court) -> None:
        """Insert or replace a court, policy included."""

    def load_court_policy(self, court_id: str):
        """Policy of a court, or ``None`` when the court is unknown."""
        court = self.load_court(court_id)
        return court.policy if court else None

    @abstractmethod
    def load_reservations(self, court_id: str, day: date) -> list[Reservation]:
        """Every reservation of a court on a date, whatever its status."""

    def load_active_reservations(self, court_id: str, day: date) -> list[Reservation]:
        """Reservations of a court on a date that occupy their window."""
        return [r for r in self.load_reservations(court_id, day) if r.is_active]

    @abstractmethod
    def load_by_id(self, reservation_id: str) -> Reservation | None:
        """Reservation by id, or ``None``."""

    @abstractmethod
    def load_user_reservations(self, user_id: str) -> list[Reservation]:
        """Every reservation of a user across courts and dates."""

    @abstractmethod
    def save(self, reservation: Reservation) -> None:
        """Insert or update a reservation."""

    @abstractmethod
    def next_reservation_id(self) -> str:
        """Fresh reservation id."""

    def append_if_no_conflict(self, reservation: Reservation) -> list[Reservation]:
        """Insert ``reservation`` unless an active one overlaps it.

        Returns the overlapping reservations; empty means it was stored.
        Stores with a native atomic primitive should override this.
        """
        from courtsched.services.conflicts import find_conflicts

        conflicts = find_conflicts(
            reservation, self.load_active_reservations(reservation.court_id, reservation.date)
        )
        if not conflicts:
            self.save(reservation)
        return conflicts

    @abstractmethod
    def load_blocks(self, court_id: str, day: date) -> list[CourtBlock]:
        """Schedule blocks of a court on a date."""

    @abstractmethod
    def save_block(self, block: CourtBlock) -> None:
        """Insert a schedule block."""

    @abstractmethod
    def delete_block(self, block_id: str) -> bool:
        """Remove a schedule block; ``False`` when it did not exist."""

    @abstractmethod
    def next_block_id(self) -> str:
        """Fresh block id."""


@runtime_checkable
class PaymentGateway(Protocol):
    """Payment provider, reduced to capture and refund by amount and reference."""

    def capture(self, amount: Decimal, reference: str) -> PaymentResult:
        ...

    def refund(self, reference: str, amount: Decimal) -> PaymentResult:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Delivers user notifications (email, push, in-app)."""

    def notify(self, notification: Notification) -> None:
        ...


@runtime_checkable
class AnalyticsSink(Protocol):
    """Receives lifecycle events for reporting."""

    def record(self, event: AnalyticsEvent) -> None:
        ...
