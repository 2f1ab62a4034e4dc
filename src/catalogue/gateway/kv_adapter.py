"""Catalog kept in the storefront's key-value store.

Used with the durable store so titles and prices survive a restart along
with the carts and stock that refer to them. Entries live under
``catalog:<item_id>`` as ``{"title": ..., "price": "<decimal string>"}``.
"""

from decimal import Decimal

import structlog
from shared.errors import ConflictingUpdate, NotFound
from shared.store.port import KeyValueStore

from catalogue.gateway.port import CatalogEntry, CatalogGateway, to_price

logger = structlog.get_logger(__name__)

KEY_PREFIX = "catalog:"
MAX_CAS_ATTEMPTS = 16


def _key(item_id: str) -> str:
    return f"{KEY_PREFIX}{item_id}"


class KeyValueCatalog(CatalogGateway):
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def upsert_item(self, item_id: str, title: str, price) -> CatalogEntry:
        entry = CatalogEntry(item_id=str(item_id), title=title, price=to_price(price))
        record = {"title": entry.title, "price": str(entry.price)}
        for _ in range(MAX_CAS_ATTEMPTS):
            current = self._store.get(_key(entry.item_id))
            try:
                self._store.compare_and_set(_key(entry.item_id), record, current.version if current else None)
            except ConflictingUpdate:
                continue
            logger.info("Catalog item saved", item_id=entry.item_id, price=str(entry.price))
            return entry
        raise ConflictingUpdate(_key(entry.item_id))

    def _entry(self, item_id: str) -> CatalogEntry:
        stored = self._store.get(_key(str(item_id)))
        if stored is None:
            raise NotFound("Item", item_id)
        return CatalogEntry(item_id=str(item_id), title=stored.value["title"], price=Decimal(stored.value["price"]))

    def current_price(self, item_id: str) -> Decimal:
        return self._entry(item_id).price

    def item_exists(self, item_id: str) -> bool:
        return self._store.get(_key(str(item_id))) is not None

    def title(self, item_id: str) -> str:
        return self._entry(item_id).title
