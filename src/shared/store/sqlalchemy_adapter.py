"""Durable key-value store backed by a single SQLAlchemy table.

Each write is a compare-and-set: an INSERT when the key must be new, or an
UPDATE guarded by ``WHERE version = :expected`` otherwise. A zero row count
means another writer got there first.
"""

import json
from typing import Any

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from shared.errors import ConflictingUpdate
from shared.store.port import KeyValueStore, Versioned

metadata = MetaData()

kv_entries = Table(
    "kv_entries",
    metadata,
    Column("key", String(255), primary_key=True),
    Column("version", Integer, nullable=False),
    Column("value", Text, nullable=False),
)


class SqlAlchemyKeyValueStore(KeyValueStore):
    def __init__(self, database_uri: str | None = None, engine: Engine | None = None) -> None:
        if engine is None and database_uri is None:
            raise ValueError("Either database_uri or engine is required")
        self._engine = engine or create_engine(database_uri)
        metadata.create_all(self._engine)

    def _current_version(self, key: str) -> int | None:
        with self._engine.connect() as conn:
            return conn.execute(select(kv_entries.c.version).where(kv_entries.c.key == key)).scalar()

    def get(self, key: str) -> Versioned | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(kv_entries.c.value, kv_entries.c.version).where(kv_entries.c.key == key)).first()
        if row is None:
            return None
        return Versioned(json.loads(row.value), row.version)

    def compare_and_set(self, key: str, value: Any, expected_version: int | None) -> int:
        payload = json.dumps(value)
        if expected_version is None:
            try:
                with self._engine.begin() as conn:
                    conn.execute(insert(kv_entries).values(key=key, version=1, value=payload))
            except IntegrityError as exc:
                raise ConflictingUpdate(key, None, self._current_version(key)) from exc
            return 1

        new_version = expected_version + 1
        with self._engine.begin() as conn:
            result = conn.execute(
                update(kv_entries)
                .where(kv_entries.c.key == key, kv_entries.c.version == expected_version)
                .values(version=new_version, value=payload)
            )
        if result.rowcount != 1:
            raise ConflictingUpdate(key, expected_version, self._current_version(key))
        return new_version

    def delete(self, key: str, expected_version: int | None = None) -> None:
        statement = delete(kv_entries).where(kv_entries.c.key == key)
        if expected_version is not None:
            statement = statement.where(kv_entries.c.version == expected_version)
        with self._engine.begin() as conn:
            result = conn.execute(statement)
        if result.rowcount == 0 and expected_version is not None:
            current = self._current_version(key)
            if current is not None:
                raise ConflictingUpdate(key, expected_version, current)

    def keys(self, prefix: str = "") -> list[str]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(kv_entries.c.key).where(kv_entries.c.key.startswith(prefix, autoescape=True)).order_by(kv_entries.c.key)
            )
            return [row.key for row in rows]
