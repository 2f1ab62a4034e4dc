"""Cart Store — per-owner cart lines, persistence only.

A cart is stored under ``cart:<owner_id>`` as an ordered list of
``[item_id, quantity]`` pairs. Insertion order is kept for display only.
Writes for one owner serialize on that owner's lock and are applied with
compare-and-set; different owners never contend.

An emptied cart is written back as an empty list rather than deleted, so the
key's version keeps increasing and a stale snapshot can never match again.

Retry safety:
    set_quantity / clear are idempotent.
    upsert adds a delta and is NOT idempotent: retrying a request that did
    reach the store adds the delta twice. Callers must deduplicate.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from shared.errors import ConflictingUpdate
from shared.store.locks import KeyedLocks
from shared.store.port import KeyValueStore

logger = structlog.get_logger(__name__)

KEY_PREFIX = "cart:"
MAX_CAS_ATTEMPTS = 16


@dataclass(frozen=True)
class CartLine:
    owner_id: str
    item_id: str
    quantity: int


@dataclass(frozen=True)
class CartSnapshot:
    """Lines of one cart as read at ``version`` (None when never written)."""

    owner_id: str
    lines: tuple[CartLine, ...]
    version: int | None

    @property
    def is_empty(self) -> bool:
        return not self.lines


def _key(owner_id: str) -> str:
    return f"{KEY_PREFIX}{owner_id}"


class CartStore:
    def __init__(self, store: KeyValueStore, lock_timeout: float = 2.0) -> None:
        self._store = store
        self._locks = KeyedLocks("cart", default_timeout=lock_timeout)

    @contextmanager
    def locked(self, owner_id: str, timeout: float | None = None) -> Iterator[None]:
        """Serialize a read-check-write sequence for one owner."""
        with self._locks.hold(str(owner_id), timeout):
            yield

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def snapshot(self, owner_id: str) -> CartSnapshot:
        entry = self._store.get(_key(owner_id))
        if entry is None:
            return CartSnapshot(owner_id=str(owner_id), lines=(), version=None)
        lines = tuple(CartLine(str(owner_id), item_id, quantity) for item_id, quantity in entry.value)
        return CartSnapshot(owner_id=str(owner_id), lines=lines, version=entry.version)

    def get(self, owner_id: str) -> list[CartLine]:
        return list(self.snapshot(owner_id).lines)

    def quantity_of(self, owner_id: str, item_id: str) -> int:
        return next((line.quantity for line in self.get(owner_id) if line.item_id == str(item_id)), 0)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def _mutate(self, owner_id: str, change) -> list[CartLine]:
        """Apply ``change(pairs) -> pairs`` with a CAS retry loop under the owner lock."""
        with self.locked(owner_id):
            for _ in range(MAX_CAS_ATTEMPTS):
                current = self.snapshot(owner_id)
                pairs = [[line.item_id, line.quantity] for line in current.lines]
                pairs = [[item_id, qty] for item_id, qty in change(pairs) if qty > 0]
                try:
                    self._store.compare_and_set(_key(owner_id), pairs, current.version)
                except ConflictingUpdate:
                    logger.debug("Cart write raced, retrying", owner_id=str(owner_id))
                    continue
                return [CartLine(str(owner_id), item_id, qty) for item_id, qty in pairs]
            raise ConflictingUpdate(_key(owner_id))

    def upsert(self, owner_id: str, item_id: str, quantity_delta: int) -> list[CartLine]:
        """Create the line or add ``quantity_delta``; a result ≤ 0 removes it."""
        item_id = str(item_id)

        def change(pairs):
            for pair in pairs:
                if pair[0] == item_id:
                    pair[1] += quantity_delta
                    return pairs
            pairs.append([item_id, quantity_delta])
            return pairs

        return self._mutate(owner_id, change)

    def set_quantity(self, owner_id: str, item_id: str, quantity: int) -> list[CartLine]:
        """Set an absolute quantity; ≤ 0 removes the line."""
        item_id = str(item_id)

        def change(pairs):
            for pair in pairs:
                if pair[0] == item_id:
                    pair[1] = quantity
                    return pairs
            pairs.append([item_id, quantity])
            return pairs

        return self._mutate(owner_id, change)

    def clear(self, owner_id: str, expected_version: int | None = None) -> None:
        """Remove every line.

        With ``expected_version`` the clear only succeeds if nothing touched
        the cart since that snapshot, otherwise ConflictingUpdate is raised.
        """
        if expected_version is None:
            self._mutate(owner_id, lambda _pairs: [])
            return
        with self.locked(owner_id):
            self._store.compare_and_set(_key(owner_id), [], expected_version)
