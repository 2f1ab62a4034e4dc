"""Cart Manager — validates cart mutations against live stock.

Bounds are fail-closed: when the requested quantity is more than the item's
available stock the call raises StockExceeded and the cart is left exactly
as it was, rather than silently shrinking what the shopper asked for. The
check is advisory; checkout re-checks authoritatively while reserving.

Guests and signed-in customers go through the same operations; the Owner
tag only matters at checkout.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog

from catalogue.gateway.port import CatalogGateway
from identity.auth.port import Owner
from inventory.stock.ledger import StockLedger, stock_status
from shared.errors import InvalidQuantity, NotFound, StockExceeded, Unauthenticated

from ordering.cart.pricing import CartTotals, compute_totals, to_money
from ordering.cart.store import CartStore
from ordering.config import StorefrontSettings

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartViewLine:
    item_id: str
    title: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    available: int
    stock_status: str


@dataclass(frozen=True)
class CartView:
    owner_id: str
    lines: tuple[CartViewLine, ...]
    totals: CartTotals

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


def _require_owner(owner: Owner | None) -> Owner:
    if owner is None or not owner.owner_id:
        raise Unauthenticated()
    return owner


class CartManager:
    def __init__(
        self,
        carts: CartStore,
        ledger: StockLedger,
        catalog: CatalogGateway,
        settings: StorefrontSettings | None = None,
    ) -> None:
        self.carts = carts
        self.ledger = ledger
        self.catalog = catalog
        self.settings = settings or StorefrontSettings()

    def _available_for(self, item_id: str) -> int:
        if not self.catalog.item_exists(item_id):
            raise NotFound("Item", item_id)
        return self.ledger.get_available(item_id)

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_to_cart(self, owner: Owner, item_id: str, quantity: int = 1) -> CartView:
        owner = _require_owner(owner)
        if quantity < 1:
            raise InvalidQuantity(quantity)

        with self.carts.locked(owner.owner_id):
            available = self._available_for(item_id)
            requested = self.carts.quantity_of(owner.owner_id, item_id) + quantity
            if requested > available:
                logger.info(
                    "Add to cart refused",
                    owner_id=owner.owner_id,
                    item_id=str(item_id),
                    requested=requested,
                    available=available,
                )
                raise StockExceeded(item_id, requested=requested, available=available)
            self.carts.upsert(owner.owner_id, item_id, quantity)

        logger.info("Item added to cart", owner_id=owner.owner_id, item_id=str(item_id), quantity=quantity)
        return self.cart_view(owner)

    def update_quantity(self, owner: Owner, item_id: str, quantity: int) -> CartView:
        owner = _require_owner(owner)
        if quantity < 1:
            raise InvalidQuantity(quantity, f"Quantity must be at least 1, got {quantity}; remove the item instead")

        with self.carts.locked(owner.owner_id):
            available = self._available_for(item_id)
            if quantity > available:
                raise StockExceeded(item_id, requested=quantity, available=available)
            self.carts.set_quantity(owner.owner_id, item_id, quantity)

        logger.info("Cart quantity updated", owner_id=owner.owner_id, item_id=str(item_id), quantity=quantity)
        return self.cart_view(owner)

    def remove_item(self, owner: Owner, item_id: str) -> CartView:
        owner = _require_owner(owner)
        self.carts.set_quantity(owner.owner_id, item_id, 0)
        logger.info("Item removed from cart", owner_id=owner.owner_id, item_id=str(item_id))
        return self.cart_view(owner)

    def clear_cart(self, owner: Owner) -> CartView:
        owner = _require_owner(owner)
        self.carts.clear(owner.owner_id)
        logger.info("Cart cleared", owner_id=owner.owner_id)
        return self.cart_view(owner)

    def merge_guest_cart(self, guest: Owner, customer: Owner) -> CartView:
        """Move a guest's lines into a customer's cart after sign-in.

        All or nothing: if any merged line would exceed available stock,
        neither cart changes.
        """
        guest = _require_owner(guest)
        customer = _require_owner(customer)
        if customer.is_guest:
            raise Unauthenticated("Sign in to merge a guest cart")
        if guest.owner_id == customer.owner_id:
            return self.cart_view(customer)

        with self.carts.locked(customer.owner_id), self.carts.locked(guest.owner_id):
            guest_snapshot = self.carts.snapshot(guest.owner_id)
            for line in guest_snapshot.lines:
                available = self._available_for(line.item_id)
                requested = self.carts.quantity_of(customer.owner_id, line.item_id) + line.quantity
                if requested > available:
                    raise StockExceeded(line.item_id, requested=requested, available=available)
            for line in guest_snapshot.lines:
                self.carts.upsert(customer.owner_id, line.item_id, line.quantity)
            self.carts.clear(guest.owner_id)

        logger.info(
            "Guest cart merged",
            owner_id=customer.owner_id,
            guest_id=guest.owner_id,
            items_merged=len(guest_snapshot.lines),
        )
        return self.cart_view(customer)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def compute_totals(self, owner: Owner) -> CartTotals:
        owner = _require_owner(owner)
        lines = self.carts.get(owner.owner_id)
        return compute_totals(
            ((line.quantity, self.catalog.current_price(line.item_id)) for line in lines),
            self.settings,
        )

    def cart_view(self, owner: Owner) -> CartView:
        owner = _require_owner(owner)
        view_lines = []
        for line in self.carts.get(owner.owner_id):
            price = self.catalog.current_price(line.item_id)
            available = self.ledger.get_available(line.item_id)
            view_lines.append(
                CartViewLine(
                    item_id=line.item_id,
                    title=self.catalog.title(line.item_id),
                    quantity=line.quantity,
                    unit_price=price,
                    line_total=to_money(price * line.quantity),
                    available=available,
                    stock_status=stock_status(available, self.settings.low_stock_threshold).value,
                )
            )
        totals = compute_totals(((line.quantity, line.unit_price) for line in view_lines), self.settings)
        return CartView(owner_id=owner.owner_id, lines=tuple(view_lines), totals=totals)

    def cart_count(self, owner: Owner) -> int:
        owner = _require_owner(owner)
        return sum(line.quantity for line in self.carts.get(owner.owner_id))
