"""Integration tests for the SQL-backed key-value store against a SQLite file."""

import pytest
from shared.errors import ConflictingUpdate
from shared.store import SqlAlchemyKeyValueStore


@pytest.fixture()
def kv(tmp_path):
    return SqlAlchemyKeyValueStore(database_uri=f"sqlite:///{tmp_path / 'storefront.db'}")


class TestSqlAlchemyStore:
    def test_round_trip_json_values(self, kv):
        kv.compare_and_set("cart:o1", [["a", 2], ["b", 1]], None)
        entry = kv.get("cart:o1")
        assert entry.value == [["a", 2], ["b", 1]]
        assert entry.version == 1

    def test_insert_twice_conflicts(self, kv):
        kv.compare_and_set("k", 1, None)
        with pytest.raises(ConflictingUpdate):
            kv.compare_and_set("k", 2, None)

    def test_versioned_update(self, kv):
        kv.compare_and_set("k", 1, None)
        assert kv.compare_and_set("k", 2, 1) == 2
        with pytest.raises(ConflictingUpdate) as exc:
            kv.compare_and_set("k", 3, 1)
        assert exc.value.actual_version == 2

    def test_delete(self, kv):
        kv.compare_and_set("k", 1, None)
        with pytest.raises(ConflictingUpdate):
            kv.delete("k", expected_version=7)
        kv.delete("k", expected_version=1)
        assert kv.get("k") is None

    def test_keys_by_prefix(self, kv):
        for key in ("stock:b", "stock:a", "order:1", "stock_x"):
            kv.compare_and_set(key, 0, None)
        assert kv.keys("stock:") == ["stock:a", "stock:b"]

    def test_data_survives_a_new_store_instance(self, tmp_path):
        uri = f"sqlite:///{tmp_path / 'durable.db'}"
        SqlAlchemyKeyValueStore(database_uri=uri).compare_and_set("stock:a", 5, None)
        assert SqlAlchemyKeyValueStore(database_uri=uri).get("stock:a").value == 5

    def test_requires_uri_or_engine(self):
        with pytest.raises(ValueError):
            SqlAlchemyKeyValueStore()
