"""Stock Ledger — the authoritative count of purchasable units per item.

Counts live in the injected key-value store under ``stock:<item_id>``. Every
mutation runs under the item's lock and is written with compare-and-set, so
two reservations against the same item serialize even when they come from
different processes sharing one durable store, and stock never goes below
zero.

Stock Level Model:
    available: units that can still be sold (decremented by reservations,
               incremented by releases and restocks)
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from enum import Enum

import structlog

from shared.errors import ConflictingUpdate, InsufficientStock, InvalidQuantity, NotFound
from shared.store.locks import KeyedLocks
from shared.store.port import KeyValueStore, Versioned

logger = structlog.get_logger(__name__)

KEY_PREFIX = "stock:"
MAX_CAS_ATTEMPTS = 16


class StockStatus(Enum):
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


def stock_status(available: int, low_threshold: int = 10) -> StockStatus:
    """Badge shown next to an item: plenty, only a few left, or none."""
    if available <= 0:
        return StockStatus.OUT_OF_STOCK
    if available <= low_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _key(item_id: str) -> str:
    return f"{KEY_PREFIX}{item_id}"


class StockLedger:
    def __init__(self, store: KeyValueStore, lock_timeout: float = 2.0) -> None:
        self._store = store
        self._locks = KeyedLocks("stock", default_timeout=lock_timeout)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def _read(self, item_id: str) -> Versioned:
        entry = self._store.get(_key(item_id))
        if entry is None:
            raise NotFound("Item", item_id)
        return entry

    def get_available(self, item_id: str) -> int:
        return int(self._read(item_id).value)

    def exists(self, item_id: str) -> bool:
        return self._store.get(_key(item_id)) is not None

    def levels(self) -> dict[str, int]:
        """Available stock for every registered item."""
        result = {}
        for key in self._store.keys(KEY_PREFIX):
            entry = self._store.get(key)
            if entry is not None:
                result[key[len(KEY_PREFIX) :]] = int(entry.value)
        return result

    # -------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------
    @contextmanager
    def hold(
        self,
        item_ids: Iterable[str],
        timeout: float | None = None,
        time_left: Callable[[], float] | None = None,
    ) -> Iterator[None]:
        """Hold the locks of several items, taken in ascending item id order."""
        with self._locks.hold_many((str(i) for i in item_ids), timeout, time_left):
            yield

    def _apply(self, item_id: str, change) -> int:
        """Run ``change(current) -> new`` under the item lock with a CAS retry loop."""
        with self._locks.hold(str(item_id)):
            for _ in range(MAX_CAS_ATTEMPTS):
                entry = self._read(item_id)
                new_value = change(int(entry.value))
                try:
                    self._store.compare_and_set(_key(item_id), new_value, entry.version)
                except ConflictingUpdate:
                    logger.debug("Stock write raced, retrying", item_id=str(item_id))
                    continue
                return new_value
            raise ConflictingUpdate(_key(item_id))

    # -------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------
    def try_reserve(self, item_id: str, quantity: int) -> int:
        """Take ``quantity`` units or raise InsufficientStock leaving stock untouched.

        Returns the stock remaining after the reservation.
        """
        if quantity <= 0:
            raise InvalidQuantity(quantity)

        def reserve(current: int) -> int:
            if current < quantity:
                raise InsufficientStock(item_id, requested=quantity, available=current)
            return current - quantity

        remaining = self._apply(item_id, reserve)
        logger.info("Stock reserved", item_id=str(item_id), quantity=quantity, remaining=remaining)
        return remaining

    def release(self, item_id: str, quantity: int) -> int:
        """Give back units taken by a reservation that did not go through."""
        if quantity <= 0:
            raise InvalidQuantity(quantity, f"Release quantity must be positive, got {quantity}")

        available = self._apply(item_id, lambda current: current + quantity)
        logger.info("Stock released", item_id=str(item_id), quantity=quantity, available=available)
        return available

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def register(self, item_id: str, stock: int = 0) -> None:
        """Start tracking a new item. Registering a known item is a ConflictingUpdate."""
        if stock < 0:
            raise InvalidQuantity(stock, f"Stock must not be negative, got {stock}")
        with self._locks.hold(str(item_id)):
            self._store.compare_and_set(_key(item_id), stock, None)
        logger.info("Stock registered", item_id=str(item_id), stock=stock)

    def restock(self, item_id: str, quantity: int) -> int:
        if quantity <= 0:
            raise InvalidQuantity(quantity, f"Restock quantity must be positive, got {quantity}")

        available = self._apply(item_id, lambda current: current + quantity)
        logger.info("Stock received", item_id=str(item_id), quantity=quantity, available=available)
        return available

    def set_stock(self, item_id: str, stock: int) -> int:
        """Absolute admin correction after a physical count."""
        if stock < 0:
            raise InvalidQuantity(stock, f"Stock must not be negative, got {stock}")

        self._apply(item_id, lambda _current: stock)
        logger.info("Stock adjusted", item_id=str(item_id), stock=stock)
        return stock
