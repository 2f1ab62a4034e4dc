"""Per-key reentrant locks with bounded waits.

Locks are created lazily per key and never block longer than the timeout
given; a wait that runs out raises LockTimeout. ``hold_many`` always takes
keys in ascending order so two callers needing overlapping key sets cannot
deadlock each other.
"""

import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import ExitStack, contextmanager

from shared.errors import LockTimeout


class KeyedLocks:
    def __init__(self, namespace: str, default_timeout: float = 2.0) -> None:
        self.namespace = namespace
        self.default_timeout = default_timeout
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, key: str, timeout: float | None = None) -> Iterator[None]:
        timeout = self.default_timeout if timeout is None else timeout
        lock = self._lock_for(key)
        if not lock.acquire(timeout=max(timeout, 0)):
            raise LockTimeout(f"{self.namespace}:{key}", timeout)
        try:
            yield
        finally:
            lock.release()

    @contextmanager
    def hold_many(
        self,
        keys: Iterable[str],
        timeout: float | None = None,
        time_left: Callable[[], float] | None = None,
    ) -> Iterator[None]:
        """Hold every key, taken in ascending order.

        ``time_left`` is asked before each acquisition and bounds that wait,
        so all the waits share one budget rather than each getting ``timeout``.
        """
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self.hold(key, time_left() if time_left else timeout))
            yield
