"""
Per-key lock registry.

One re-entrant lock per username, so policy reads/writes and mirror
operations for the same user never interleave inside one process.
Separate processes working on the same storage root are not coordinated.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLocks:
    """Lazily created RLock per key."""

    def __init__(self):
        self._lock = threading.Lock()
        self._locks: Dict[str, threading.RLock] = {}

    def get(self, key: str) -> threading.RLock:
        with self._lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for `key` for the duration of the block."""
        lock = self.get(key)
        with lock:
            yield
