"""Process-wide keyed locks.

Each key gets its own re-entrant mutex, created on first use and dropped once nobody holds
or waits on it, so unrelated keys never contend.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from threading import Lock, RLock


class KeyedLocks:
    """Registry of reference-counted locks keyed by arbitrary hashables."""

    def __init__(self) -> None:
        self._guard = Lock()
        self._locks: dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = [RLock(), 0]
                self._locks[key] = entry
            entry[1] += 1
        lock = entry[0]
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Ledger identities and aggregate targets live in separate registries; the
# ledger lock is always taken before the aggregate lock.
LEDGER_LOCKS = KeyedLocks()
AGGREGATE_LOCKS = KeyedLocks()
BOOKMARK_LOCKS = KeyedLocks()
