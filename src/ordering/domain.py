"""Ordering bounded context — shopping carts, checkout and placed orders.

Carts and stock are plain services over an injected key-value store; the
Order Record is a Protean aggregate so its fields, status machine and domain
events are declared the same way as the rest of the platform.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
