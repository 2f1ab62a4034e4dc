"""FastAPI routes for the Storefront — cart, orders and stock administration.

Handlers are plain ``def`` so FastAPI runs them in its threadpool: the
services below them take short, bounded locks and must not block the event
loop. The Storefront and identity provider are read from ``app.state``;
nothing here reaches a module-level singleton.
"""

from fastapi import APIRouter, Depends, Header, Request

from identity.auth.port import IdentityProvider, Owner
from shared.errors import Unauthenticated
from ordering.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CartCountResponse,
    CartViewResponse,
    CreateItemRequest,
    ItemResponse,
    OrderListResponse,
    OrderResponse,
    RestockRequest,
    SetStockRequest,
    StockLevelResponse,
    UpdateOrderStatusRequest,
    UpdateQuantityRequest,
)
from ordering.storefront import Storefront


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def current_owner(
    identity: IdentityProvider = Depends(get_identity),
    x_customer_id: str | None = Header(default=None),
    x_session_id: str | None = Header(default=None),
) -> Owner:
    return identity.current_owner(x_customer_id, x_session_id)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartViewResponse)
def get_cart(owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    return CartViewResponse.from_view(storefront.get_cart_view(owner))


@cart_router.get("/count", response_model=CartCountResponse)
def get_cart_count(owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    return CartCountResponse(count=storefront.cart_count(owner))


@cart_router.post("/items", response_model=CartViewResponse)
def add_cart_item(
    body: AddToCartRequest,
    owner: Owner = Depends(current_owner),
    storefront: Storefront = Depends(get_storefront),
):
    return CartViewResponse.from_view(storefront.add_to_cart(owner, body.item_id, body.quantity))


@cart_router.put("/items/{item_id}", response_model=CartViewResponse)
def update_cart_item(
    item_id: str,
    body: UpdateQuantityRequest,
    owner: Owner = Depends(current_owner),
    storefront: Storefront = Depends(get_storefront),
):
    return CartViewResponse.from_view(storefront.update_quantity(owner, item_id, body.quantity))


@cart_router.delete("/items/{item_id}", response_model=CartViewResponse)
def remove_cart_item(
    item_id: str,
    owner: Owner = Depends(current_owner),
    storefront: Storefront = Depends(get_storefront),
):
    return CartViewResponse.from_view(storefront.remove_item(owner, item_id))


@cart_router.delete("", response_model=CartViewResponse)
def clear_cart(owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    return CartViewResponse.from_view(storefront.clear_cart(owner))


@cart_router.post("/merge", response_model=CartViewResponse)
def merge_guest_cart(
    owner: Owner = Depends(current_owner),
    x_session_id: str | None = Header(default=None),
    storefront: Storefront = Depends(get_storefront),
):
    """Fold the cart this browser filled as a guest into the signed-in account's cart.

    The guest cart is the caller's own ``X-Session-Id``; a customer cannot name
    another session's cart.
    """
    if not x_session_id or not x_session_id.strip():
        raise Unauthenticated("No guest session to merge")
    return CartViewResponse.from_view(storefront.merge_guest_cart(Owner.guest(x_session_id.strip()), owner))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
def checkout(owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    """Convert the caller's cart into a pending order.

    Stock is reserved for every line or for none; a shortfall answers 409
    with the item, requested and available quantities.
    """
    return OrderResponse.from_stored(storefront.checkout(owner))


@order_router.get("", response_model=OrderListResponse)
def list_orders(owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    return OrderListResponse(orders=[OrderResponse.from_stored(stored) for stored in storefront.list_orders(owner)])


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, owner: Owner = Depends(current_owner), storefront: Storefront = Depends(get_storefront)):
    return OrderResponse.from_stored(storefront.get_order(order_id, owner))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    owner: Owner = Depends(current_owner),
    storefront: Storefront = Depends(get_storefront),
):
    expected_version = body.expected_version if body else None
    return OrderResponse.from_stored(storefront.cancel_order(order_id, owner, expected_version))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    storefront: Storefront = Depends(get_storefront),
):
    """Admin status change. Setting ``cancelled`` returns the order's stock to the ledger."""
    stored = storefront.update_order_status(order_id, body.status.value, body.expected_version)
    return OrderResponse.from_stored(stored)


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/items", status_code=201, response_model=ItemResponse)
def create_item(body: CreateItemRequest, storefront: Storefront = Depends(get_storefront)):
    entry = storefront.add_item(body.item_id, body.title, body.price, body.stock)
    available, _status = storefront.stock_level(entry.item_id)
    return ItemResponse(item_id=entry.item_id, title=entry.title, price=float(entry.price), available=available)


@admin_router.post("/items/{item_id}/restock", response_model=StockLevelResponse)
def restock_item(item_id: str, body: RestockRequest, storefront: Storefront = Depends(get_storefront)):
    storefront.restock(item_id, body.quantity)
    available, stock_status = storefront.stock_level(item_id)
    return StockLevelResponse(item_id=item_id, available=available, status=stock_status.value)


@admin_router.put("/items/{item_id}/stock", response_model=StockLevelResponse)
def set_item_stock(item_id: str, body: SetStockRequest, storefront: Storefront = Depends(get_storefront)):
    storefront.set_stock(item_id, body.stock)
    available, stock_status = storefront.stock_level(item_id)
    return StockLevelResponse(item_id=item_id, available=available, status=stock_status.value)


# ---------------------------------------------------------------------------
# Item Router
# ---------------------------------------------------------------------------
item_router = APIRouter(prefix="/items", tags=["items"])


@item_router.get("/{item_id}/stock", response_model=StockLevelResponse)
def get_item_stock(item_id: str, storefront: Storefront = Depends(get_storefront)):
    available, stock_status = storefront.stock_level(item_id)
    return StockLevelResponse(item_id=item_id, available=available, status=stock_status.value)
