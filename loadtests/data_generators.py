"""Faker-based data generators for Locust load test scenarios.

Payloads match the field names of the Storefront API's Pydantic request
schemas. Item ids are drawn from a small shared pool so that concurrent
shoppers actually compete for the same stock.
"""

import random
import uuid
from decimal import Decimal

from faker import Faker

fake = Faker()

# Shared across all users in one Locust process
ITEM_POOL = [f"lt-item-{n:03d}" for n in range(20)]
SCARCE_ITEM = "lt-scarce-001"


def customer_id() -> str:
    """Generate customer ids like 'cust-lt-a1b2c3d4'."""
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def session_id() -> str:
    return f"sess-lt-{uuid.uuid4().hex[:12]}"


def item_price() -> str:
    """Prices between $2 and $45 so some carts qualify for free shipping and some don't."""
    return str(Decimal(random.randint(200, 4500)) / 100)


def create_item_data(item_id: str, stock: int) -> dict:
    """Generate a CreateItemRequest payload."""
    return {
        "item_id": item_id,
        "title": fake.catch_phrase()[:100],
        "price": item_price(),
        "stock": stock,
    }


def cart_item_data(item_id: str | None = None) -> dict:
    """Generate an AddToCartRequest payload for a pooled item."""
    return {
        "item_id": item_id or random.choice(ITEM_POOL),
        "quantity": random.randint(1, 3),
    }


def customer_headers(owner_id: str) -> dict:
    return {"X-Customer-Id": owner_id}


def guest_headers(session: str) -> dict:
    return {"X-Session-Id": session}
