"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
"""

from dataclasses import dataclass, field


@dataclass
class ShopperState:
    """Tracks a single simulated shopper from browsing to checkout."""

    customer_id: str | None = None
    session_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    order_id: str | None = None
    order_version: int = 0
