"""Per-key mutual exclusion without a global lock."""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterator
from contextlib import contextmanager


class KeyedLock:
    """Hand out one lock per key; entries disappear when nobody holds them."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock, holders = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, holders + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                _, holders = self._locks[key]
                if holders <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, holders - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
