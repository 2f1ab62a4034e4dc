"""Storefront load test scenarios.

ShopperJourney walks one customer from an empty cart to a placed (and
sometimes cancelled) order. StockContentionUser has every user race for the
same scarce item: a 409 stock refusal is an expected outcome there, while a
5xx means the checkout window or a lock timed out under load.
"""

import random

import requests
from locust import HttpUser, SequentialTaskSet, between, events, task

from loadtests.data_generators import (
    ITEM_POOL,
    SCARCE_ITEM,
    cart_item_data,
    create_item_data,
    customer_headers,
    customer_id,
    guest_headers,
    session_id,
)
from loadtests.helpers.response import extract_error_detail, is_stock_refusal
from loadtests.helpers.state import ShopperState


@events.test_start.add_listener
def seed_catalog(environment, **_kwargs):
    """Register the pooled items with generous stock and the scarce item with very little."""
    if environment.host is None:
        return

    for item_id in ITEM_POOL:
        requests.post(f"{environment.host}/admin/items", json=create_item_data(item_id, 100_000), timeout=10)
    requests.post(f"{environment.host}/admin/items", json=create_item_data(SCARCE_ITEM, 50), timeout=10)


class ShopperJourney(SequentialTaskSet):
    """Guest browse -> Sign in and merge -> Adjust -> Checkout -> Maybe cancel."""

    def on_start(self):
        self.state = ShopperState(customer_id=customer_id(), session_id=session_id())

    @property
    def as_customer(self):
        return customer_headers(self.state.customer_id)

    @task
    def browse_as_guest(self):
        payload = cart_item_data()
        with self.client.post(
            "/cart/items",
            json=payload,
            headers=guest_headers(self.state.session_id),
            catch_response=True,
            name="POST /cart/items (guest)",
        ) as resp:
            if resp.status_code == 200:
                self.state.item_ids.append(payload["item_id"])
            else:
                resp.failure(f"Guest add failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def sign_in_and_merge(self):
        with self.client.post(
            "/cart/merge",
            headers={**self.as_customer, **guest_headers(self.state.session_id)},
            catch_response=True,
            name="POST /cart/merge",
        ) as resp:
            if resp.status_code != 200 and not is_stock_refusal(resp):
                resp.failure(f"Merge failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def add_more_items(self):
        for _ in range(random.randint(1, 3)):
            payload = cart_item_data()
            with self.client.post(
                "/cart/items",
                json=payload,
                headers=self.as_customer,
                catch_response=True,
                name="POST /cart/items",
            ) as resp:
                if resp.status_code == 200:
                    self.state.item_ids.append(payload["item_id"])
                elif not is_stock_refusal(resp):
                    resp.failure(f"Add item failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def view_cart(self):
        self.client.get("/cart", headers=self.as_customer, name="GET /cart")
        self.client.get("/cart/count", headers=self.as_customer, name="GET /cart/count")

    @task
    def checkout(self):
        with self.client.post(
            "/orders",
            headers=self.as_customer,
            catch_response=True,
            name="POST /orders",
        ) as resp:
            if resp.status_code == 201:
                body = resp.json()
                self.state.order_id = body["order_id"]
                self.state.order_version = body["version"]
            elif is_stock_refusal(resp):
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Checkout failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def maybe_cancel(self):
        if random.random() > 0.3:
            return
        with self.client.put(
            f"/orders/{self.state.order_id}/cancel",
            json={"expected_version": self.state.order_version},
            headers=self.as_customer,
            catch_response=True,
            name="PUT /orders/{id}/cancel",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Cancel failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(0.5, 2)
    tasks = [ShopperJourney]


class StockContentionUser(HttpUser):
    """Every user tries to buy the same scarce item; oversell must never happen."""

    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = customer_headers(customer_id())

    @task
    def race_for_scarce_item(self):
        self.client.post(
            "/cart/items",
            json={"item_id": SCARCE_ITEM, "quantity": 1},
            headers=self.headers,
            name="[CONTENTION] POST /cart/items",
        )
        with self.client.post(
            "/orders",
            headers=self.headers,
            catch_response=True,
            name="[CONTENTION] POST /orders",
        ) as resp:
            if resp.status_code == 201 or is_stock_refusal(resp):
                resp.success()
            elif resp.status_code == 422:
                # Cart was refused at add time, nothing to check out
                resp.success()
            else:
                resp.failure(f"Contended checkout failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def watch_stock(self):
        self.client.get(f"/items/{SCARCE_ITEM}/stock", name="[CONTENTION] GET /items/{id}/stock")
