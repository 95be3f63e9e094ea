"""Per-key exclusive locks."""

import threading
from collections.abc import Hashable
from collections.abc import Iterator
from contextlib import contextmanager


class KeyedLock:
    """Exclusive lock per hashable key, e.g. ``(court_id, date)``.

    Entries are reference counted and dropped once no thread holds or waits
    for them, so the registry does not grow with every date ever booked.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
