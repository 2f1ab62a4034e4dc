"""Storefront Load Testing — Locust entry point.

Usage:
    # All scenarios (web UI):
    locust -f loadtests/locustfile.py

    # Shopper journeys only:
    locust -f loadtests/locustfile.py ShopperUser

    # Headless contention run (CI mode):
    locust -f loadtests/locustfile.py StockContentionUser --headless \
           -u 50 -r 5 -t 120s --csv=results/contention
"""

import logging
import time

import requests
from locust import events

# Import all user classes so Locust discovers them
from loadtests.data_generators import SCARCE_ITEM
from loadtests.helpers.response import extract_error_detail
from loadtests.scenarios.storefront import ShopperUser, StockContentionUser  # noqa: F401

logger = logging.getLogger("loadtest")


@events.request.add_listener
def on_request(request_type, name, response, exception, **_kw):
    """Log error details for every failed request."""
    if exception:
        logger.error("[EXCEPTION] %s %s: %s", request_type, name, exception)
    elif response is not None and response.status_code >= 500:
        detail = extract_error_detail(response)
        logger.error("[%s] %s %s: %s", response.status_code, request_type, name, detail)


@events.test_start.add_listener
def on_test_start(environment, **_kwargs):
    print(f"\n[LOADTEST] Started at {time.strftime('%H:%M:%S')}")
    print(f"[LOADTEST] Target host: {environment.host}")
    print()


@events.test_stop.add_listener
def on_test_stop(environment, **_kwargs):
    """Print the scarce item's final stock; it must never be negative."""
    print(f"\n[LOADTEST] Stopped at {time.strftime('%H:%M:%S')}")
    if environment.host is None:
        return

    try:
        resp = requests.get(f"{environment.host}/items/{SCARCE_ITEM}/stock", timeout=5)
        print(f"[LOADTEST] Final stock for {SCARCE_ITEM}: {resp.json()}")
    except requests.RequestException as e:
        print(f"[LOADTEST] Could not fetch final stock: {e}")
