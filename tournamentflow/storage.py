"""
tournamentflow/storage.py - Key-value stores the manager persists into.

The manager only needs string get/set. MemoryStore is for tests and
throwaway runs; SqliteStore keeps the same three records in a single SQLite
file (or :memory:) so the catalog survives restarts.
"""

import sqlite3
from datetime import datetime, timezone
from typing import Protocol

TOURNAMENTS_KEY = "tournamentflow_tournaments"
PAYOUTS_KEY = "tournamentflow_payouts"
PLAYERS_KEY = "tournamentflow_players"

_UPSERT = (
    "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at"
)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def set_many(self, items: dict[str, str]) -> None: ...


class MemoryStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def set_many(self, items: dict[str, str]) -> None:
        self._data.update(items)

    def keys(self) -> list[str]:
        return list(self._data)


class SqliteStore:
    """Thin wrapper around SQLite holding string records by key."""

    def __init__(self, path: str = "tournamentflow.db"):
        self.path = path
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT
            );
            """
        )

    def get(self, key: str) -> str | None:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self._conn.execute(_UPSERT, (key, value, _now()))
        self._conn.commit()

    def set_many(self, items: dict[str, str]) -> None:
        """Write several records in one transaction. Either all land or none do."""
        now = _now()
        with self._conn:
            self._conn.executemany(_UPSERT, [(key, value, now) for key, value in items.items()])

    def close(self) -> None:
        self._conn.close()


def _now() -> str:
    """ISO timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()
