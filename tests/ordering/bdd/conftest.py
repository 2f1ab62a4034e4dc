"""Shared BDD fixtures and step definitions for the Ordering domain."""

from decimal import Decimal

import pytest
from identity.auth.port import Owner
from pytest_bdd import given, parsers, then, when
from shared.errors import StorefrontError


@pytest.fixture()
def outcome():
    """Mutable holder for the last order placed and the last error seen."""
    return {"order": None, "error": None}


def _customer(name):
    return Owner.customer(f"cust-{name}")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalog has "{item_id}" priced {price} with {stock:d} in stock'))
def catalog_item(storefront, item_id, price, stock):
    storefront.add_item(item_id, item_id.title(), Decimal(price), stock)


@given(parsers.cfparse('customer "{name}" has {quantity:d} of "{item_id}" in the cart'))
def customer_cart_line(storefront, name, quantity, item_id):
    storefront.add_to_cart(_customer(name), item_id, quantity)


@given(parsers.cfparse('the stock of "{item_id}" is set to {stock:d}'))
def set_stock(storefront, item_id, stock):
    storefront.set_stock(item_id, stock)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('customer "{name}" checks out'))
@when(parsers.cfparse('customer "{name}" checks out'))
def checkout(storefront, outcome, name):
    try:
        outcome["order"] = storefront.checkout(_customer(name))
    except StorefrontError as exc:
        outcome["error"] = exc


@when(parsers.cfparse('customer "{name}" cancels the order'))
def cancel(storefront, outcome, name):
    outcome["order"] = storefront.cancel_order(str(outcome["order"].order.id), _customer(name))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the checkout succeeds")
def checkout_succeeded(outcome):
    assert outcome["error"] is None
    assert outcome["order"] is not None


@then(parsers.cfparse("the order is pending with a total of {total}"))
def order_pending_with_total(outcome, total):
    order = outcome["order"].order
    assert order.status == "pending"
    assert Decimal(str(order.totals.total)) == Decimal(total)


@then("the order is cancelled")
def order_cancelled(outcome):
    assert outcome["order"].order.status == "cancelled"


@then(parsers.cfparse('the checkout is refused with "{code}"'))
def checkout_refused(outcome, code):
    assert outcome["error"] is not None
    assert outcome["error"].code == code


@then(parsers.cfparse('"{item_id}" has {available:d} available'))
def stock_available(storefront, item_id, available):
    assert storefront.ledger.get_available(item_id) == available


@then(parsers.cfparse('customer "{name}" has an empty cart'))
def empty_cart(storefront, name):
    assert storefront.cart_count(_customer(name)) == 0


@then(parsers.cfparse('customer "{name}" still has {count:d} items in the cart'))
def cart_count(storefront, name, count):
    assert storefront.cart_count(_customer(name)) == count
