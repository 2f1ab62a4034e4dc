"""Checkout Coordinator — turns a cart into an order, all or nothing.

One coordinator instance runs one checkout attempt. The cart and the stock
ledger are owned independently and share no transaction, so the attempt
reserves stock first and either commits everything or compensates
everything it did.

Flow:
    1. VALIDATING  owner must be signed in; snapshot the cart (EmptyCart if
                   it has no lines); capture each line's current price.
    2. RESERVING   under the ledger's item locks (taken in ascending item id
                   order so overlapping checkouts cannot deadlock), reserve
                   every line in that same order. The first shortfall
                   releases what was already taken, in reverse, and aborts
                   with InsufficientStock.
    3. COMMITTED   persist the order as ``pending``, then clear the cart
                   against the snapshot version. If either write fails, the
                   order is discarded and every reservation released before
                   the failure is reported.
    ABORTED        terminal failure reached from VALIDATING or RESERVING.

The attempt is bounded by ``checkout_window_seconds``: running out of time,
including while waiting for a lock, aborts through the same compensation
path with CheckoutTimedOut. Each lock wait gets only what is left of the
window. Compensation releases stock before it discards the order, and a
failing compensation step is logged without replacing the abort reason.
"""

import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import structlog
from catalogue.gateway.port import CatalogGateway
from identity.auth.port import Owner
from inventory.stock.ledger import StockLedger
from shared.errors import CheckoutTimedOut, EmptyCart, LockTimeout, StorefrontError, Unauthenticated

from ordering.cart.pricing import compute_totals
from ordering.cart.store import CartSnapshot, CartStore
from ordering.config import StorefrontSettings
from ordering.order.order import Order
from ordering.order.store import OrderStore, StoredOrder

logger = structlog.get_logger(__name__)


class CheckoutState(Enum):
    VALIDATING = "validating"
    RESERVING = "reserving"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PricedLine:
    item_id: str
    quantity: int
    unit_price: Decimal


class CheckoutCoordinator:
    def __init__(
        self,
        carts: CartStore,
        ledger: StockLedger,
        catalog: CatalogGateway,
        orders: OrderStore,
        settings: StorefrontSettings | None = None,
        clock=time.monotonic,
    ) -> None:
        self.carts = carts
        self.ledger = ledger
        self.catalog = catalog
        self.orders = orders
        self.settings = settings or StorefrontSettings()
        self._clock = clock

        self.state = CheckoutState.VALIDATING
        self.abort_reason: StorefrontError | None = None
        self.reserved: list[tuple[str, int]] = []
        self.order: Order | None = None
        self._order_persisted = False
        self._owner_id: str | None = None
        self._deadline = 0.0

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------
    def run(self, owner: Owner) -> StoredOrder:
        if self.state != CheckoutState.VALIDATING or self._owner_id is not None:
            raise RuntimeError("A checkout coordinator runs a single attempt")

        self._owner_id = owner.owner_id if owner else None
        self._deadline = self._clock() + self.settings.checkout_window_seconds
        try:
            snapshot, lines = self._validate(owner)
            self.state = CheckoutState.RESERVING
            self._reserve(lines)
            stored = self._commit(snapshot, lines)
        except LockTimeout as exc:
            timed_out = CheckoutTimedOut(self._owner_id or "", self.settings.checkout_window_seconds)
            self._abort(timed_out)
            raise timed_out from exc
        except Exception as exc:
            self._abort(exc)
            raise

        self.state = CheckoutState.COMMITTED
        logger.info(
            "Checkout committed",
            owner_id=self._owner_id,
            order_id=str(stored.order.id),
            total=stored.order.totals.total,
        )
        return stored

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _remaining(self) -> float:
        remaining = self._deadline - self._clock()
        if remaining <= 0:
            raise CheckoutTimedOut(self._owner_id or "", self.settings.checkout_window_seconds)
        return remaining

    def _validate(self, owner: Owner) -> tuple[CartSnapshot, list[PricedLine]]:
        if owner is None or not owner.owner_id:
            raise Unauthenticated()
        if owner.is_guest:
            raise Unauthenticated("Sign in to check out")

        snapshot = self.carts.snapshot(owner.owner_id)
        if snapshot.is_empty:
            raise EmptyCart(owner.owner_id)

        lines = [
            PricedLine(line.item_id, line.quantity, self.catalog.current_price(line.item_id))
            for line in snapshot.lines
        ]
        return snapshot, sorted(lines, key=lambda line: line.item_id)

    def _reserve(self, lines: list[PricedLine]) -> None:
        with self.ledger.hold([line.item_id for line in lines], time_left=self._remaining):
            for line in lines:
                self._remaining()
                self.ledger.try_reserve(line.item_id, line.quantity)
                self.reserved.append((line.item_id, line.quantity))

    def _commit(self, snapshot: CartSnapshot, lines: list[PricedLine]) -> StoredOrder:
        totals = compute_totals(((line.quantity, line.unit_price) for line in lines), self.settings)
        self.order = Order.place(
            owner_id=snapshot.owner_id,
            lines=[(line.item_id, line.quantity, line.unit_price) for line in lines],
            totals=totals,
        )

        self._remaining()
        stored = self.orders.add(self.order)
        self._order_persisted = True

        self._remaining()
        self.carts.clear(snapshot.owner_id, expected_version=snapshot.version)
        return stored

    # -------------------------------------------------------------------
    # Compensation
    # -------------------------------------------------------------------
    def _abort(self, reason: Exception) -> None:
        self.state = CheckoutState.ABORTED
        self.abort_reason = reason if isinstance(reason, StorefrontError) else None

        released = []
        try:
            for item_id, quantity in reversed(self.reserved):
                try:
                    self.ledger.release(item_id, quantity)
                    released.append((item_id, quantity))
                except Exception as exc:
                    logger.error(
                        "Compensating release failed",
                        owner_id=self._owner_id,
                        item_id=item_id,
                        quantity=quantity,
                        error=str(exc),
                        exc_info=True,
                    )
        finally:
            self.reserved = []
            if self._order_persisted and self.order is not None:
                try:
                    self.orders.discard(self.order)
                    self._order_persisted = False
                except Exception as exc:
                    logger.error(
                        "Discarding aborted order failed",
                        owner_id=self._owner_id,
                        order_id=str(self.order.id),
                        error=str(exc),
                        exc_info=True,
                    )

        logger.warning(
            "Checkout aborted",
            owner_id=self._owner_id,
            reason=getattr(reason, "code", type(reason).__name__),
            detail=str(reason),
            released=len(released),
        )
