"""Key-value store port (abstract interface).

Defines the persistence contract shared by the stock ledger, the cart store
and the order store. Every key carries a version that increases on each
write, and every write is a compare-and-set against that version. This
enables swapping between InMemoryKeyValueStore (dev/test) and
SqlAlchemyKeyValueStore (durable) without touching the services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Versioned:
    """A stored value together with the version it was read at."""

    value: Any
    version: int


class KeyValueStore(ABC):
    """Abstract versioned key-value store."""

    @abstractmethod
    def get(self, key: str) -> Versioned | None:
        """Return the current value and version, or None when absent."""
        ...

    @abstractmethod
    def compare_and_set(self, key: str, value: Any, expected_version: int | None) -> int:
        """Write ``value`` iff the key is still at ``expected_version``.

        ``expected_version=None`` means the key must not exist yet. Returns
        the new version; raises ConflictingUpdate on a mismatch.
        """
        ...

    @abstractmethod
    def delete(self, key: str, expected_version: int | None = None) -> None:
        """Remove a key, guarded by ``expected_version`` when given."""
        ...

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """Return all keys starting with ``prefix``, sorted."""
        ...
