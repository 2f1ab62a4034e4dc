"""Application tests for order status changes and cancellation."""

import pytest
from identity.auth.port import Owner
from ordering.order.events import OrderCancelled, OrderStatusChanged
from ordering.storefront import Storefront
from shared.errors import ConflictingUpdate, InvalidStatusTransition, NotFound


@pytest.fixture()
def placed(storefront, stock_item, alice):
    """A pending order for 2 × book-1 and 1 × pen-1, out of stocks of 5 and 3."""
    stock_item("book-1", "10.00", 5)
    stock_item("pen-1", "1.50", 3)
    storefront.add_to_cart(alice, "book-1", 2)
    storefront.add_to_cart(alice, "pen-1", 1)
    return storefront.checkout(alice)


class TestReadingOrders:
    def test_get_order(self, storefront, placed, alice):
        stored = storefront.get_order(str(placed.order.id), alice)
        assert str(stored.order.id) == str(placed.order.id)
        assert stored.version == placed.version

    def test_other_owner_cannot_see_order(self, storefront, placed, bob):
        with pytest.raises(NotFound):
            storefront.get_order(str(placed.order.id), bob)

    def test_admin_can_read_any_order(self, storefront, placed):
        assert storefront.get_order(str(placed.order.id)).order.status == "pending"

    def test_unknown_order(self, storefront, alice):
        with pytest.raises(NotFound):
            storefront.get_order("missing", alice)

    def test_list_orders(self, storefront, placed, alice, bob):
        storefront.add_to_cart(alice, "book-1", 1)
        second = storefront.checkout(alice)

        ids = [str(stored.order.id) for stored in storefront.list_orders(alice)]
        assert ids == [str(placed.order.id), str(second.order.id)]
        assert storefront.list_orders(bob) == []


class TestStatusUpdates:
    def test_advance_through_fulfilment(self, storefront, placed):
        order_id = str(placed.order.id)
        for status in ("processing", "shipped", "delivered"):
            stored = storefront.update_order_status(order_id, status)
            assert stored.order.status == status
        assert storefront.get_order(order_id).order.status == "delivered"

    def test_version_increases_on_every_change(self, storefront, placed):
        stored = storefront.update_order_status(str(placed.order.id), "processing")
        assert stored.version == placed.version + 1

    def test_invalid_transition(self, storefront, placed):
        with pytest.raises(InvalidStatusTransition):
            storefront.update_order_status(str(placed.order.id), "delivered")
        assert storefront.get_order(str(placed.order.id)).order.status == "pending"

    def test_unknown_status_value(self, storefront, placed):
        with pytest.raises(InvalidStatusTransition):
            storefront.update_order_status(str(placed.order.id), "teleported")

    def test_stale_version_conflicts(self, storefront, placed):
        order_id = str(placed.order.id)
        storefront.update_order_status(order_id, "processing", expected_version=placed.version)

        with pytest.raises(ConflictingUpdate):
            storefront.update_order_status(order_id, "shipped", expected_version=placed.version)

    def test_status_change_is_published(self, store, catalog, settings, alice):
        received = []
        storefront = Storefront(store, catalog, settings=settings, listeners=[received.append])
        storefront.add_item("book-1", "Book", "10.00", 5)
        storefront.add_to_cart(alice, "book-1", 1)
        stored = storefront.checkout(alice)
        storefront.update_order_status(str(stored.order.id), "processing")

        assert isinstance(received[-1], OrderStatusChanged)
        assert received[-1].new_status == "processing"


class TestCancellation:
    def test_cancel_returns_stock(self, storefront, placed, alice):
        assert storefront.ledger.get_available("book-1") == 3

        stored = storefront.cancel_order(str(placed.order.id), alice)

        assert stored.order.status == "cancelled"
        assert storefront.ledger.get_available("book-1") == 5
        assert storefront.ledger.get_available("pen-1") == 3

    def test_cancel_twice_returns_stock_once(self, storefront, placed, alice):
        storefront.cancel_order(str(placed.order.id), alice)
        with pytest.raises(InvalidStatusTransition):
            storefront.cancel_order(str(placed.order.id), alice)
        assert storefront.ledger.get_available("book-1") == 5

    def test_cancel_processing_order(self, storefront, placed, alice):
        storefront.update_order_status(str(placed.order.id), "processing")
        assert storefront.cancel_order(str(placed.order.id), alice).order.status == "cancelled"

    def test_shipped_order_cannot_be_cancelled(self, storefront, placed, alice):
        order_id = str(placed.order.id)
        storefront.update_order_status(order_id, "processing")
        storefront.update_order_status(order_id, "shipped")

        with pytest.raises(InvalidStatusTransition):
            storefront.cancel_order(order_id, alice)
        assert storefront.ledger.get_available("book-1") == 3

    def test_other_owner_cannot_cancel(self, storefront, placed, bob):
        with pytest.raises(NotFound):
            storefront.cancel_order(str(placed.order.id), bob)
        assert storefront.get_order(str(placed.order.id)).order.status == "pending"

    def test_admin_cancel_through_status_update(self, storefront, placed):
        stored = storefront.update_order_status(str(placed.order.id), "cancelled")
        assert stored.order.status == "cancelled"
        assert storefront.ledger.get_available("book-1") == 5

    def test_cancel_loses_to_concurrent_ship(self, storefront, placed, alice):
        order_id = str(placed.order.id)
        seen_version = storefront.get_order(order_id, alice).version
        storefront.update_order_status(order_id, "processing")

        with pytest.raises(ConflictingUpdate):
            storefront.cancel_order(order_id, alice, expected_version=seen_version)
        assert storefront.ledger.get_available("book-1") == 3

    def test_cancel_event_published(self, store, catalog, settings, alice):
        received = []
        storefront = Storefront(store, catalog, settings=settings, listeners=[received.append])
        storefront.add_item("book-1", "Book", "10.00", 5)
        storefront.add_to_cart(alice, "book-1", 2)
        stored = storefront.checkout(alice)
        storefront.cancel_order(str(stored.order.id), Owner.customer("cust-alice"))

        assert isinstance(received[-1], OrderCancelled)
        assert received[-1].cancelled_by == "Customer"
