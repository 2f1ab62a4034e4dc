"""Order aggregate — the immutable record of what was purchased.

An Order is created once, at checkout, from a cart whose stock has already
been reserved. Its lines capture ``unit_price`` at that moment and are never
recomputed, even if the catalogue price changes later: the order is the
audit boundary between mutable catalogue state and purchase history. After
creation only ``status`` moves.

State Machine:
    PENDING → PROCESSING → SHIPPED → DELIVERED
    PENDING | PROCESSING → CANCELLED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject
from shared.errors import InvalidStatusTransition

from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class CancellationActor(Enum):
    CUSTOMER = "Customer"
    ADMIN = "Admin"
    SYSTEM = "System"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class OrderTotals:
    """Financial summary locked at checkout."""

    subtotal = Float(default=0.0, min_value=0.0)
    tax = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0, min_value=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """One purchased line: which item, how many, and the price paid per unit."""

    item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    owner_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    totals = ValueObject(OrderTotals)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, owner_id, lines, totals):
        """Create a pending order.

        Args:
            lines: iterable of ``(item_id, quantity, unit_price)``.
            totals: object with ``subtotal``, ``tax``, ``shipping`` and ``total``.
        """
        now = datetime.now(UTC)
        order = cls(
            owner_id=owner_id,
            status=OrderStatus.PENDING.value,
            totals=OrderTotals(
                subtotal=float(totals.subtotal),
                tax=float(totals.tax),
                shipping=float(totals.shipping),
                total=float(totals.total),
            ),
            created_at=now,
            updated_at=now,
        )
        for item_id, quantity, unit_price in lines:
            order.add_items(OrderItem(item_id=str(item_id), quantity=quantity, unit_price=float(unit_price)))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                owner_id=str(owner_id),
                items=json.dumps(order.line_summaries(with_prices=True)),
                subtotal=order.totals.subtotal,
                tax=order.totals.tax,
                shipping=order.totals.shipping,
                total=order.totals.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def line_summaries(self, with_prices=False):
        summaries = []
        for item in self.items:
            summary = {"item_id": str(item.item_id), "quantity": item.quantity}
            if with_prices:
                summary["unit_price"] = item.unit_price
            summaries.append(summary)
        return summaries

    @property
    def is_cancelled(self):
        return self.status == OrderStatus.CANCELLED.value

    def _transition(self, target):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidStatusTransition(str(self.id), current.value, target.value)
        self.status = target.value
        self.updated_at = datetime.now(UTC)
        return current

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def advance_to(self, target, version=0):
        """Move along the fulfilment path (processing, shipped, delivered)."""
        target = OrderStatus(target)
        if target == OrderStatus.CANCELLED:
            raise InvalidStatusTransition(str(self.id), self.status, target.value)

        previous = self._transition(target)
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous.value,
                new_status=target.value,
                version=version + 1,
                changed_at=self.updated_at,
            )
        )

    def cancel(self, cancelled_by=CancellationActor.CUSTOMER.value):
        previous = self._transition(OrderStatus.CANCELLED)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                owner_id=str(self.owner_id),
                previous_status=previous.value,
                items=json.dumps(self.line_summaries()),
                cancelled_by=cancelled_by,
                cancelled_at=self.updated_at,
            )
        )

    # -------------------------------------------------------------------
    # Persistence snapshot
    # -------------------------------------------------------------------
    def snapshot(self):
        """JSON-compatible record written to the order store."""
        return {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "status": self.status,
            "items": [
                {
                    "id": str(item.id),
                    "item_id": str(item.item_id),
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                }
                for item in self.items
            ],
            "totals": {
                "subtotal": self.totals.subtotal,
                "tax": self.totals.tax,
                "shipping": self.totals.shipping,
                "total": self.totals.total,
            },
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_snapshot(cls, data):
        order = cls(
            id=data["id"],
            owner_id=data["owner_id"],
            status=data["status"],
            totals=OrderTotals(**data["totals"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
        for item in data["items"]:
            order.add_items(OrderItem(**item))
        return order
