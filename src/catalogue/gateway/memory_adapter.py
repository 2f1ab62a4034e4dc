"""In-memory catalog used by the storefront app and by tests.

Admin screens add items and change prices through ``upsert_item``; a price
change never touches orders already placed, which captured their own
``unit_price`` at checkout.
"""

import threading
from decimal import Decimal

from shared.errors import NotFound

from catalogue.gateway.port import CatalogEntry, CatalogGateway, to_price


class InMemoryCatalog(CatalogGateway):
    def __init__(self, entries: list[CatalogEntry] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries or []:
            self.upsert_item(entry.item_id, entry.title, entry.price)

    def upsert_item(self, item_id: str, title: str, price) -> CatalogEntry:
        entry = CatalogEntry(item_id=str(item_id), title=title, price=to_price(price))
        with self._lock:
            self._entries[entry.item_id] = entry
        return entry

    def _entry(self, item_id: str) -> CatalogEntry:
        with self._lock:
            entry = self._entries.get(str(item_id))
        if entry is None:
            raise NotFound("Item", item_id)
        return entry

    def current_price(self, item_id: str) -> Decimal:
        return self._entry(item_id).price

    def item_exists(self, item_id: str) -> bool:
        with self._lock:
            return str(item_id) in self._entries

    def title(self, item_id: str) -> str:
        return self._entry(item_id).title
