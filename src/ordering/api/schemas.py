"""Pydantic request/response schemas for the Storefront API.

These are external contracts, kept separate from the Protean Order
aggregate and the cart dataclasses. Quantities are deliberately not
range-checked here: the service answers out-of-range quantities with its
own typed InvalidQuantity failure.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from ordering.cart.manager import CartView
from ordering.order.store import StoredOrder


class OrderStatusValue(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    item_id: str
    quantity: int = 1

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "item_id": "book-001",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateQuantityRequest(BaseModel):
    quantity: int


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatusValue
    expected_version: int | None = None


class CancelOrderRequest(BaseModel):
    expected_version: int | None = None


# ---------------------------------------------------------------------------
# Admin Request Schemas
# ---------------------------------------------------------------------------
class CreateItemRequest(BaseModel):
    item_id: str
    title: str
    price: Decimal = Field(ge=0)
    stock: int = Field(ge=0, default=0)


class RestockRequest(BaseModel):
    quantity: int


class SetStockRequest(BaseModel):
    stock: int


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class TotalsSchema(BaseModel):
    subtotal: float
    tax: float
    shipping: float
    total: float


class CartLineSchema(BaseModel):
    item_id: str
    title: str
    quantity: int
    unit_price: float
    line_total: float
    available: int
    stock_status: str


class CartViewResponse(BaseModel):
    owner_id: str
    lines: list[CartLineSchema]
    totals: TotalsSchema
    item_count: int

    @classmethod
    def from_view(cls, view: CartView) -> "CartViewResponse":
        return cls(
            owner_id=view.owner_id,
            lines=[
                CartLineSchema(
                    item_id=line.item_id,
                    title=line.title,
                    quantity=line.quantity,
                    unit_price=float(line.unit_price),
                    line_total=float(line.line_total),
                    available=line.available,
                    stock_status=line.stock_status,
                )
                for line in view.lines
            ],
            totals=TotalsSchema(
                subtotal=float(view.totals.subtotal),
                tax=float(view.totals.tax),
                shipping=float(view.totals.shipping),
                total=float(view.totals.total),
            ),
            item_count=view.item_count,
        )


class CartCountResponse(BaseModel):
    count: int


class OrderItemSchema(BaseModel):
    item_id: str
    quantity: int
    unit_price: float


class OrderResponse(BaseModel):
    order_id: str
    owner_id: str
    status: str
    items: list[OrderItemSchema]
    totals: TotalsSchema
    created_at: datetime
    updated_at: datetime
    version: int

    @classmethod
    def from_stored(cls, stored: StoredOrder) -> "OrderResponse":
        order = stored.order
        return cls(
            order_id=str(order.id),
            owner_id=str(order.owner_id),
            status=order.status,
            items=[
                OrderItemSchema(item_id=str(item.item_id), quantity=item.quantity, unit_price=item.unit_price)
                for item in order.items
            ],
            totals=TotalsSchema(
                subtotal=order.totals.subtotal,
                tax=order.totals.tax,
                shipping=order.totals.shipping,
                total=order.totals.total,
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
            version=stored.version,
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]


class StockLevelResponse(BaseModel):
    item_id: str
    available: int
    status: str


class ItemResponse(BaseModel):
    item_id: str
    title: str
    price: float
    available: int
