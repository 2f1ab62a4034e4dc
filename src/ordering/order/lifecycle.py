"""Order lifecycle — status changes and cancellation after checkout.

Status writes are optimistic: the change is computed from the record as read
and written with compare-and-set against that read's version. A user
cancelling while an admin marks the order shipped cannot both win; the loser
gets ConflictingUpdate and can re-read.

Cancellation gives every line's quantity back to the Stock Ledger. The
release happens only after the cancelled status is durably written, and a
cancelled order cannot be cancelled again, so stock is returned exactly
once.
"""

import structlog
from identity.auth.port import Owner
from inventory.stock.ledger import StockLedger
from shared.errors import ConflictingUpdate, InvalidStatusTransition, NotFound, StorefrontError

from ordering.order.order import CancellationActor, OrderStatus
from ordering.order.store import OrderStore, StoredOrder

logger = structlog.get_logger(__name__)


class OrderLifecycle:
    def __init__(self, orders: OrderStore, ledger: StockLedger) -> None:
        self.orders = orders
        self.ledger = ledger

    def get_order(self, order_id: str, owner: Owner | None = None) -> StoredOrder:
        """Fetch an order; with ``owner`` only that owner's orders are visible."""
        stored = self.orders.get(order_id)
        if owner is not None and str(stored.order.owner_id) != owner.owner_id:
            raise NotFound("Order", order_id)
        return stored

    def list_orders(self, owner: Owner) -> list[StoredOrder]:
        return self.orders.for_owner(owner.owner_id)

    def _read_for_update(self, order_id: str, expected_version: int | None, owner: Owner | None) -> StoredOrder:
        stored = self.get_order(order_id, owner)
        if expected_version is not None and expected_version != stored.version:
            raise ConflictingUpdate(f"order:{order_id}", expected_version, stored.version)
        return stored

    def update_status(self, order_id: str, status: str, expected_version: int | None = None) -> StoredOrder:
        """Admin status change; ``cancelled`` goes through cancellation."""
        if status not in {s.value for s in OrderStatus}:
            raise InvalidStatusTransition(order_id, self.orders.get(order_id).order.status, str(status))
        if OrderStatus(status) == OrderStatus.CANCELLED:
            return self.cancel_order(order_id, expected_version=expected_version, cancelled_by=CancellationActor.ADMIN.value)

        stored = self._read_for_update(order_id, expected_version, owner=None)
        stored.order.advance_to(status, version=stored.version)
        saved = self.orders.save(stored.order, stored.version)
        logger.info("Order status changed", order_id=order_id, status=status, version=saved.version)
        return saved

    def cancel_order(
        self,
        order_id: str,
        owner: Owner | None = None,
        expected_version: int | None = None,
        cancelled_by: str = CancellationActor.CUSTOMER.value,
    ) -> StoredOrder:
        stored = self._read_for_update(order_id, expected_version, owner)
        stored.order.cancel(cancelled_by=cancelled_by)
        saved = self.orders.save(stored.order, stored.version)
        logger.info("Order cancelled", order_id=order_id, cancelled_by=cancelled_by, version=saved.version)

        self._replenish(saved)
        return saved

    def _replenish(self, stored: StoredOrder) -> None:
        failures = []
        for item in stored.order.items:
            try:
                self.ledger.release(str(item.item_id), item.quantity)
            except StorefrontError as exc:
                logger.error(
                    "Failed to return stock for cancelled order",
                    order_id=str(stored.order.id),
                    item_id=str(item.item_id),
                    quantity=item.quantity,
                    error=str(exc),
                )
                failures.append(exc)
        if failures:
            raise failures[0]
