"""Versioned key-value persistence.

- InMemoryKeyValueStore for development and testing
- SqlAlchemyKeyValueStore for durable storage

Stores are constructed by the application and passed to each service; there
is no module-level default instance.
"""

from shared.store.memory_adapter import InMemoryKeyValueStore
from shared.store.port import KeyValueStore, Versioned
from shared.store.sqlalchemy_adapter import SqlAlchemyKeyValueStore

__all__ = ["KeyValueStore", "Versioned", "InMemoryKeyValueStore", "SqlAlchemyKeyValueStore"]
