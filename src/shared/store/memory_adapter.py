"""Thread-safe in-memory key-value store for development and testing.

Values are deep-copied on the way in and out so callers never share mutable
state with the store, the same as reading from a real database.
"""

import copy
import threading
from typing import Any

from shared.errors import ConflictingUpdate
from shared.store.port import KeyValueStore, Versioned


class InMemoryKeyValueStore(KeyValueStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, Versioned] = {}
        self.writes = 0

    def get(self, key: str) -> Versioned | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            return Versioned(copy.deepcopy(entry.value), entry.version)

    def compare_and_set(self, key: str, value: Any, expected_version: int | None) -> int:
        with self._lock:
            entry = self._data.get(key)
            current = entry.version if entry is not None else None
            if current != expected_version:
                raise ConflictingUpdate(key, expected_version, current)
            new_version = (current or 0) + 1
            self._data[key] = Versioned(copy.deepcopy(value), new_version)
            self.writes += 1
            return new_version

    def delete(self, key: str, expected_version: int | None = None) -> None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return
            if expected_version is not None and entry.version != expected_version:
                raise ConflictingUpdate(key, expected_version, entry.version)
            del self._data[key]
            self.writes += 1

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))
