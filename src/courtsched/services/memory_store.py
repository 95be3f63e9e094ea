"""
In-memory persistence store.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from courtsched.config.types import AppConfig
from courtsched.models.court import Court
from courtsched.models.reservation import CourtBlock, Reservation
from courtsched.services.conflicts import find_conflicts
from courtsched.services.interfaces import PersistenceStore
from courtsched.utils.logging_utils import LoggerMixin


class InMemoryStore(LoggerMixin, PersistenceStore):
    """Thread-safe store keeping everything in dictionaries.

    Reads hand out copies so callers can mutate a reservation without
    touching the stored row until they ``save`` it.
    """

    def __init__(
        self,
        courts: Iterable[Court] = (),
        reservations: Iterable[Reservation] = (),
        blocks: Iterable[CourtBlock] = ()
    ):
        super().__init__()
        self._lock = threading.RLock()
        self._courts: dict[str, Court] = {court.id: court for court in courts}
        self._reservations: dict[str, Reservation] = {r.id: replace(r) for r in reservations}
        self._blocks: dict[str, CourtBlock] = {block.id: block for block in blocks}
        self._reservation_ids = itertools.count(1)
        self._block_ids = itertools.count(1)

    @classmethod
    def from_config(cls, config: AppConfig) -> InMemoryStore:
        """Store seeded with the configured courts, reservations and blocks."""
        courts = [Court.from_dict(court_id, data, config.timezone) for court_id, data in config.courts.items()]
        store = cls(
            courts,
            [Reservation.from_dict(entry) for entry in config.reservations],
            [CourtBlock.from_dict(entry) for entry in config.blocks]
        )
        store.debug(
            "Loaded store from configuration",
            courts=len(courts),
            reservations=len(config.reservations),
            blocks=len(config.blocks)
        )
        return store

    def save_court(self, court: Court) -> None:
        with self._lock:
            self._courts[court.id] = court

    def list_courts(self) -> list[Court]:
        with self._lock:
            return sorted(self._courts.values(), key=lambda court: court.id)

    def load_court(self, court_id: str) -> Court | None:
        with self._lock:
            return self._courts.get(court_id)

    def load_reservations(self, court_id: str, day: date) -> list[Reservation]:
        with self._lock:
            return [
                replace(r) for r in self._reservations.values()
                if r.court_id == court_id and r.date == day
            ]

    def load_user_reservations(self, user_id: str) -> list[Reservation]:
        with self._lock:
            return [replace(r) for r in self._reservations.values() if r.user_id == user_id]

    def load_by_id(self, reservation_id: str) -> Reservation | None:
        with self._lock:
            reservation = self._reservations.get(reservation_id)
            return replace(reservation) if reservation else None

    def save(self, reservation: Reservation) -> None:
        with self._lock:
            self._reservations[reservation.id] = replace(reservation)

    def append_if_no_conflict(self, reservation: Reservation) -> list[Reservation]:
        """Check and insert under the store lock."""
        with self._lock:
            conflicts = find_conflicts(reservation, self.load_active_reservations(reservation.court_id, reservation.date))
            if not conflicts:
                self._reservations[reservation.id] = replace(reservation)
            return conflicts

    def next_reservation_id(self) -> str:
        with self._lock:
            while True:
                candidate = f"R{next(self._reservation_ids):05d}"
                if candidate not in self._reservations:
                    return candidate

    def all_reservations(self) -> list[Reservation]:
        with self._lock:
            return [replace(r) for r in self._reservations.values()]

    def load_blocks(self, court_id: str, day: date) -> list[CourtBlock]:
        with self._lock:
            return [b for b in self._blocks.values() if b.court_id == court_id and b.date == day]

    def save_block(self, block: CourtBlock) -> None:
        with self._lock:
            self._blocks[block.id] = block

    def delete_block(self, block_id: str) -> bool:
        with self._lock:
            return self._blocks.pop(block_id, None) is not None

    def next_block_id(self) -> str:
        with self._lock:
            while True:
                candidate = f"B{next(self._block_ids):05d}"
                if candidate not in self._blocks:
                    return candidate
