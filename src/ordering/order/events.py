"""Domain events for the Order aggregate.

Events are raised on the aggregate and handed to post-commit listeners
(payment capture, confirmation emails) only after the order is durably
stored, never while stock or cart locks are held.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out: stock is reserved and the order awaits processing."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {item_id, quantity, unit_price}
    subtotal = Float(required=True)
    tax = Float(required=True)
    shipping = Float(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """An order moved forward in its fulfilment lifecycle."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    version = Integer(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled; its reserved stock goes back to the ledger."""

    __version__ = 1

    order_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    previous_status = String(required=True)
    items = Text(required=True)  # JSON: list of {item_id, quantity}
    cancelled_by = String(required=True)
    cancelled_at = DateTime(required=True)
