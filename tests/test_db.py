"""
Tests for the SQLite store engine
"""

import sqlite3
import threading

import pytest

from pets_provider.app.core.db import INSERT_FAILED, InsertResult, StoreEngine
from pets_provider.app.core.exceptions import StoreError, ValidationError


@pytest.fixture
def store(tmp_path):
    engine = StoreEngine(str(tmp_path / "store.db"))
    try:
        yield engine
    finally:
        engine.close()


def _pet(name="Tommy", weight=45):
    return {"name": name, "breed": "Pitbull", "gender": 1, "weight": weight}


class TestSchema:
    def test_ensure_schema_is_idempotent(self, store):
        store.ensure_schema()
        store.ensure_schema()
        conn = sqlite3.connect(store.database)
        try:
            versions = conn.execute("SELECT version FROM migrations").fetchall()
            columns = [r[1] for r in conn.execute("PRAGMA table_info(pets)")]
        finally:
            conn.close()
        assert versions == [(1,)]
        assert columns == ["_id", "name", "breed", "gender", "weight"]

    def test_schema_survives_reopen(self, tmp_path):
        path = str(tmp_path / "reopen.db")
        with StoreEngine(path) as first:
            first.insert(_pet())
        with StoreEngine(path) as second:
            assert [r["name"] for r in second.query_all()] == ["Tommy"]

    def test_defaults(self, store):
        result = store.insert({"name": "Kitty"})
        row = store.query_one(result.row_id)
        assert row == {"_id": result.row_id, "name": "Kitty", "breed": None, "gender": 0, "weight": 0}


class TestQuery:
    def test_empty_table_yields_empty_sequence(self, store):
        rows = store.query_all()
        assert rows is not None
        assert list(rows) == []

    def test_sequence_is_lazy_and_restartable(self, store):
        rows = store.query_all()
        assert rows.all() == []
        store.insert(_pet())
        assert [r["name"] for r in rows] == ["Tommy"]
        assert [r["name"] for r in rows] == ["Tommy"]

    def test_projection_selection_and_order(self, store):
        for name, weight in (("Rex", 30), ("Tommy", 45), ("Bella", 12)):
            store.insert(_pet(name, weight))
        rows = store.query_all(["name"], "weight > ?", (20,), "name DESC").all()
        assert rows == [{"name": "Tommy"}, {"name": "Rex"}]

    def test_query_one(self, store):
        new_id = store.insert(_pet()).row_id
        assert store.query_one(new_id, ["name"]) == {"name": "Tommy"}
        assert store.query_one(new_id + 100) is None

    def test_unknown_column_rejected(self, store):
        with pytest.raises(ValidationError):
            store.query_all(["name", "color"])

    @pytest.mark.parametrize("order_by", ["name; DROP TABLE pets", "color", "name SIDEWAYS"])
    def test_invalid_order_by_rejected(self, store, order_by):
        with pytest.raises(ValidationError):
            store.query_all(order_by=order_by)

    def test_bad_selection_raises_store_error_on_iteration(self, store):
        rows = store.query_all(selection="no_such_column = ?", selection_args=(1,))
        with pytest.raises(StoreError):
            rows.all()

    def test_values_are_bound_not_interpolated(self, store):
        store.insert(_pet("O'Malley"))
        rows = store.query_all(selection="name = ?", selection_args=("O'Malley",)).all()
        assert len(rows) == 1


class TestWrites:
    def test_insert_returns_distinct_ids(self, store):
        first = store.insert(_pet())
        second = store.insert(_pet("Rex"))
        assert first.ok and second.ok
        assert first.row_id >= 0
        assert second.row_id != first.row_id

    def test_insert_failure_reports_sentinel(self, store):
        store.ensure_schema()
        conn = sqlite3.connect(store.database)
        try:
            conn.execute("CREATE UNIQUE INDEX idx_pets_name ON pets(name)")
            conn.commit()
        finally:
            conn.close()
        assert store.insert(_pet()).ok
        result = store.insert(_pet())
        assert not result.ok
        assert result.row_id_or_sentinel == INSERT_FAILED
        assert isinstance(result.error, StoreError)

    def test_insert_unknown_column_is_store_error(self, store):
        result = store.insert({"name": "Tommy", "color": "brown"})
        assert not result.ok
        assert "unknown column" in result.error.message

    def test_insert_result_defaults(self):
        assert not InsertResult().ok
        assert InsertResult(row_id=0).ok

    def test_update_empty_payload_is_noop(self, store):
        store.insert(_pet())
        assert store.update({}) == 0
        assert store.query_all(["name"]).all() == [{"name": "Tommy"}]

    def test_update_with_selection(self, store):
        store.insert(_pet("Tommy"))
        store.insert(_pet("Rex"))
        assert store.update({"weight": 50}, "name = ?", ("Rex",)) == 1
        weights = {r["name"]: r["weight"] for r in store.query_all()}
        assert weights == {"Tommy": 45, "Rex": 50}

    def test_update_failure_reports_zero(self, store):
        new_id = store.insert(_pet()).row_id
        assert store.update({"name": None}, "_id = ?", (new_id,)) == 0
        assert store.query_one(new_id)["name"] == "Tommy"

    def test_delete(self, store):
        store.insert(_pet("Tommy"))
        store.insert(_pet("Rex"))
        assert store.delete("name = ?", ("Rex",)) == 1
        assert store.delete() == 1
        assert store.query_all().all() == []


class TestMemoryDatabase:
    def test_readers_share_the_memory_database(self):
        with StoreEngine(":memory:") as store:
            store.insert(_pet())
            assert [r["name"] for r in store.query_all()] == ["Tommy"]


class TestOversizedIntegers:
    """Integers SQLite cannot bind are store failures, not crashes"""

    def test_insert(self, store):
        result = store.insert({"name": "Big", "gender": 0, "weight": 2**70})
        assert not result.ok
        assert result.row_id_or_sentinel == INSERT_FAILED
        assert store.query_all().all() == []

    def test_update(self, store):
        store.insert(_pet())
        assert store.update({"weight": 2**70}) == 0
        assert store.update({"weight": 1}, "_id = ?", (2**70,)) == 0
        assert store.query_all(["weight"]).all() == [{"weight": 45}]

    def test_delete(self, store):
        store.insert(_pet())
        assert store.delete("_id = ?", (2**70,)) == 0
        assert len(store.query_all().all()) == 1

    def test_query(self, store):
        with pytest.raises(StoreError):
            store.query_all(selection="_id = ?", selection_args=(2**70,)).all()


class TestMemoryConcurrency:
    def test_reads_overlapping_writes(self):
        errors = []

        with StoreEngine(":memory:") as store:

            def write(n):
                try:
                    for i in range(25):
                        store.insert(_pet(f"pet-{n}-{i}", i))
                except Exception as e:  # collected for the assertion below
                    errors.append(e)

            def read():
                try:
                    for _ in range(50):
                        store.query_all().all()
                except Exception as e:  # collected for the assertion below
                    errors.append(e)

            threads = [threading.Thread(target=write, args=(n,)) for n in range(3)]
            threads += [threading.Thread(target=read) for _ in range(3)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert errors == []
            assert len(store.query_all().all()) == 75
