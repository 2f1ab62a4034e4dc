"""Storefront settings.

Defaults reproduce the flat-rate storefront rules; each value can be
overridden with a ``STOREFRONT_*`` environment variable. ``PROTEAN_ENV``
selects the environment the same way it does for the domain, and with it
the default log level and format.
"""

import os
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class StorefrontSettings:
    tax_rate: Decimal = Decimal("0.08")
    free_shipping_threshold: Decimal = Decimal("30")
    flat_shipping_fee: Decimal = Decimal("5.99")
    checkout_window_seconds: float = 5.0
    lock_timeout_seconds: float = 2.0
    low_stock_threshold: int = 10
    database_url: str | None = None
    environment: str = "development"
    log_level: str | None = None
    log_dir: str | None = None

    @classmethod
    def from_env(cls) -> "StorefrontSettings":
        defaults = cls()
        return cls(
            tax_rate=Decimal(os.getenv("STOREFRONT_TAX_RATE", str(defaults.tax_rate))),
            free_shipping_threshold=Decimal(
                os.getenv("STOREFRONT_FREE_SHIPPING_THRESHOLD", str(defaults.free_shipping_threshold))
            ),
            flat_shipping_fee=Decimal(os.getenv("STOREFRONT_FLAT_SHIPPING_FEE", str(defaults.flat_shipping_fee))),
            checkout_window_seconds=float(
                os.getenv("STOREFRONT_CHECKOUT_WINDOW_SECONDS", defaults.checkout_window_seconds)
            ),
            lock_timeout_seconds=float(os.getenv("STOREFRONT_LOCK_TIMEOUT_SECONDS", defaults.lock_timeout_seconds)),
            low_stock_threshold=int(os.getenv("STOREFRONT_LOW_STOCK_THRESHOLD", defaults.low_stock_threshold)),
            database_url=os.getenv("STOREFRONT_DATABASE_URL") or None,
            environment=(os.getenv("PROTEAN_ENV") or "development").lower(),
            log_level=(os.getenv("STOREFRONT_LOG_LEVEL") or os.getenv("LOG_LEVEL") or "").upper() or None,
            log_dir=os.getenv("STOREFRONT_LOG_DIR") or None,
        )
