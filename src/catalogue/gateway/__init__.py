"""Catalog lookups consumed by the storefront."""

from catalogue.gateway.kv_adapter import KeyValueCatalog
from catalogue.gateway.memory_adapter import InMemoryCatalog
from catalogue.gateway.port import CatalogEntry, CatalogGateway

__all__ = ["CatalogGateway", "CatalogEntry", "InMemoryCatalog", "KeyValueCatalog"]
