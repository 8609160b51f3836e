"""Tests for tournamentflow.storage — memory and SQLite key-value stores."""

import sqlite3

import pytest

from tournamentflow.storage import MemoryStore, SqliteStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
    else:
        s = SqliteStore(str(tmp_path / "kv.db"))
        yield s
        s.close()


class TestKeyValueStore:
    def test_missing_key_is_none(self, store):
        assert store.get("absent") is None

    def test_set_then_get(self, store):
        store.set("k", '["a"]')
        assert store.get("k") == '["a"]'

    def test_overwrite(self, store):
        store.set("k", "1")
        store.set("k", "2")
        assert store.get("k") == "2"


class TestSqliteStore:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "kv.db")
        first = SqliteStore(path)
        first.set("tournamentflow_tournaments", "[]")
        first.close()

        second = SqliteStore(path)
        assert second.get("tournamentflow_tournaments") == "[]"
        second.close()

    def test_in_memory(self):
        s = SqliteStore(":memory:")
        s.set("k", "v")
        assert s.get("k") == "v"


class TestMemoryStore:
    def test_initial_data(self):
        s = MemoryStore({"k": "v"})
        assert s.get("k") == "v"
        assert s.keys() == ["k"]


class TestSetMany:
    def test_writes_every_key(self, store):
        store.set("a", "old")
        store.set_many({"a": "1", "b": "2", "c": "3"})
        assert [store.get(k) for k in "abc"] == ["1", "2", "3"]

    def test_sqlite_batch_is_all_or_nothing(self, tmp_path):
        s = SqliteStore(str(tmp_path / "kv.db"))
        s.set_many({"tournaments": "[1]", "payouts": "[]"})

        # NULL violates the value column's NOT NULL constraint
        with pytest.raises(sqlite3.IntegrityError):
            s.set_many({"tournaments": "[1, 2]", "payouts": None})

        assert s.get("tournaments") == "[1]"
        assert s.get("payouts") == "[]"
        s.close()
