"""Order store — write-once order records with versioned status updates.

Orders live under ``order:<order_id>``; each owner's order history is an id
list under ``orders-of:<owner_id>``. The store version of an order record is
its optimistic-concurrency token: a status change is only written if the
record is still at the version the change was computed from.
"""

from dataclasses import dataclass

import structlog
from shared.errors import ConflictingUpdate, NotFound
from shared.store.port import KeyValueStore

from ordering.order.order import Order

logger = structlog.get_logger(__name__)

ORDER_PREFIX = "order:"
OWNER_INDEX_PREFIX = "orders-of:"
MAX_CAS_ATTEMPTS = 16


@dataclass(frozen=True)
class StoredOrder:
    order: Order
    version: int


class OrderStore:
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def add(self, order: Order) -> StoredOrder:
        """Write a new order and append it to its owner's history.

        If the history cannot be updated the record is removed again, so a
        failed ``add`` leaves no readable order behind.
        """
        key = f"{ORDER_PREFIX}{order.id}"
        version = self._store.compare_and_set(key, order.snapshot(), None)
        try:
            self._update_index(str(order.owner_id), lambda ids: ids + [str(order.id)])
        except Exception:
            try:
                self._store.delete(key)
            except Exception as exc:
                logger.error("Orphaned order record left behind", order_id=str(order.id), error=str(exc))
            raise
        return StoredOrder(order=order, version=version)

    def get(self, order_id: str) -> StoredOrder:
        entry = self._store.get(f"{ORDER_PREFIX}{order_id}")
        if entry is None:
            raise NotFound("Order", order_id)
        return StoredOrder(order=Order.from_snapshot(entry.value), version=entry.version)

    def save(self, order: Order, expected_version: int) -> StoredOrder:
        version = self._store.compare_and_set(f"{ORDER_PREFIX}{order.id}", order.snapshot(), expected_version)
        return StoredOrder(order=order, version=version)

    def discard(self, order: Order) -> None:
        """Remove an order that never became visible to its owner (failed commit)."""
        self._store.delete(f"{ORDER_PREFIX}{order.id}")
        self._update_index(str(order.owner_id), lambda ids: [i for i in ids if i != str(order.id)])
        logger.warning("Order discarded", order_id=str(order.id), owner_id=str(order.owner_id))

    def for_owner(self, owner_id: str) -> list[StoredOrder]:
        entry = self._store.get(f"{OWNER_INDEX_PREFIX}{owner_id}")
        orders = []
        for order_id in entry.value if entry else []:
            try:
                orders.append(self.get(order_id))
            except NotFound:
                logger.warning("Order history points at a missing order", owner_id=owner_id, order_id=order_id)
        return orders

    def _update_index(self, owner_id: str, change) -> None:
        key = f"{OWNER_INDEX_PREFIX}{owner_id}"
        for _ in range(MAX_CAS_ATTEMPTS):
            entry = self._store.get(key)
            ids = list(entry.value) if entry else []
            try:
                self._store.compare_and_set(key, change(ids), entry.version if entry else None)
                return
            except ConflictingUpdate:
                continue
        raise ConflictingUpdate(key)
