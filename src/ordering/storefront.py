"""Storefront — the operations exposed to the cart page, product page and admin screens.

One Storefront is built per application from an explicit key-value store
and catalog; every component below it receives its collaborators through
its constructor. Post-commit listeners (payment capture, confirmation
emails) receive the order's domain events only after the order is durably
stored and every lock has been released.
"""

import time
from collections.abc import Callable

import structlog
from catalogue.gateway.port import CatalogGateway, CatalogEntry
from identity.auth.port import Owner
from inventory.stock.ledger import StockLedger, StockStatus, stock_status
from shared.errors import InvalidQuantity, NotFound
from shared.store.port import KeyValueStore

from ordering.cart.manager import CartManager, CartView
from ordering.cart.store import CartStore
from ordering.checkout.coordinator import CheckoutCoordinator
from ordering.config import StorefrontSettings
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order
from ordering.order.store import OrderStore, StoredOrder

logger = structlog.get_logger(__name__)

OrderListener = Callable[[object], None]


class Storefront:
    def __init__(
        self,
        store: KeyValueStore,
        catalog: CatalogGateway,
        settings: StorefrontSettings | None = None,
        listeners: list[OrderListener] | None = None,
        clock=time.monotonic,
    ) -> None:
        self.settings = settings or StorefrontSettings()
        self.catalog = catalog
        self.ledger = StockLedger(store, lock_timeout=self.settings.lock_timeout_seconds)
        self.carts = CartStore(store, lock_timeout=self.settings.lock_timeout_seconds)
        self.orders = OrderStore(store)
        self.cart_manager = CartManager(self.carts, self.ledger, catalog, self.settings)
        self.lifecycle = OrderLifecycle(self.orders, self.ledger)
        self.listeners = list(listeners or [])
        self._clock = clock

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def add_to_cart(self, owner: Owner, item_id: str, quantity: int = 1) -> CartView:
        return self.cart_manager.add_to_cart(owner, item_id, quantity)

    def update_quantity(self, owner: Owner, item_id: str, quantity: int) -> CartView:
        return self.cart_manager.update_quantity(owner, item_id, quantity)

    def remove_item(self, owner: Owner, item_id: str) -> CartView:
        return self.cart_manager.remove_item(owner, item_id)

    def clear_cart(self, owner: Owner) -> CartView:
        return self.cart_manager.clear_cart(owner)

    def get_cart_view(self, owner: Owner) -> CartView:
        return self.cart_manager.cart_view(owner)

    def cart_count(self, owner: Owner) -> int:
        return self.cart_manager.cart_count(owner)

    def merge_guest_cart(self, guest: Owner, customer: Owner) -> CartView:
        return self.cart_manager.merge_guest_cart(guest, customer)

    # -------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------
    def checkout(self, owner: Owner) -> StoredOrder:
        coordinator = CheckoutCoordinator(
            self.carts,
            self.ledger,
            self.catalog,
            self.orders,
            settings=self.settings,
            clock=self._clock,
        )
        stored = coordinator.run(owner)
        self._publish(stored.order)
        return stored

    def get_order(self, order_id: str, owner: Owner | None = None) -> StoredOrder:
        return self.lifecycle.get_order(order_id, owner)

    def list_orders(self, owner: Owner) -> list[StoredOrder]:
        return self.lifecycle.list_orders(owner)

    def update_order_status(self, order_id: str, status: str, expected_version: int | None = None) -> StoredOrder:
        stored = self.lifecycle.update_status(order_id, status, expected_version)
        self._publish(stored.order)
        return stored

    def cancel_order(self, order_id: str, owner: Owner | None = None, expected_version: int | None = None) -> StoredOrder:
        stored = self.lifecycle.cancel_order(order_id, owner=owner, expected_version=expected_version)
        self._publish(stored.order)
        return stored

    # -------------------------------------------------------------------
    # Catalog and stock administration
    # -------------------------------------------------------------------
    def add_item(self, item_id: str, title: str, price, stock: int = 0) -> CatalogEntry:
        if stock < 0:
            raise InvalidQuantity(stock, f"Stock must not be negative, got {stock}")
        entry = self.catalog.upsert_item(item_id, title, price)
        if self.ledger.exists(item_id):
            self.ledger.set_stock(item_id, stock)
        else:
            self.ledger.register(item_id, stock)
        return entry

    def restock(self, item_id: str, quantity: int) -> int:
        return self.ledger.restock(item_id, quantity)

    def set_stock(self, item_id: str, stock: int) -> int:
        return self.ledger.set_stock(item_id, stock)

    def stock_level(self, item_id: str) -> tuple[int, StockStatus]:
        if not self.catalog.item_exists(item_id):
            raise NotFound("Item", item_id)
        available = self.ledger.get_available(item_id)
        return available, stock_status(available, self.settings.low_stock_threshold)

    # -------------------------------------------------------------------
    # Post-commit notification
    # -------------------------------------------------------------------
    def _publish(self, order: Order) -> None:
        events = list(order._events)
        order._events.clear()
        for event in events:
            for listener in self.listeners:
                try:
                    listener(event)
                except Exception as exc:
                    logger.error(
                        "Order listener failed",
                        order_id=str(order.id),
                        event_type=type(event).__name__,
                        error=str(exc),
                        exc_info=True,
                    )
