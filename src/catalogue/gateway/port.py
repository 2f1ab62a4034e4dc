"""Catalog gateway port (abstract interface).

The storefront needs live prices, titles and existence checks from the
catalogue, plus the admin create-or-edit used when stocking a new item.
Browse, search and category management stay in the catalogue service.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CatalogEntry:
    item_id: str
    title: str
    price: Decimal


def to_price(value) -> Decimal:
    """Normalize an admin-entered price to cents; negative prices are refused."""
    price = Decimal(str(value))
    if price < 0:
        raise ValueError(f"Price must not be negative: {value}")
    return price.quantize(Decimal("0.01"))


class CatalogGateway(ABC):
    @abstractmethod
    def current_price(self, item_id: str) -> Decimal:
        """Return the current display price; raises NotFound for unknown items."""
        ...

    @abstractmethod
    def item_exists(self, item_id: str) -> bool: ...

    @abstractmethod
    def title(self, item_id: str) -> str:
        """Return the display title; raises NotFound for unknown items."""
        ...

    @abstractmethod
    def upsert_item(self, item_id: str, title: str, price) -> CatalogEntry:
        """Admin create-or-edit of an item's title and price."""
        ...
