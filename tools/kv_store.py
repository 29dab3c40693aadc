"""Byte-oriented key-value substrates for engine state."""
from __future__ import annotations

import sqlite3
import threading
from contextlib import closing
from pathlib import Path
from typing import Dict, Iterator, Optional


class KeyValueStore:
    """Persistence interface: opaque bytes stored under a small set of keys."""

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def set(self, key: str, value: bytes) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, handy for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._values: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._values[key] = bytes(value)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._values))


class SQLiteKeyValueStore(KeyValueStore):
    """Local SQLite-backed store with one row per key."""

    def __init__(self, database_path: str | Path = "data/wardrobe_state.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.database_path)

    def _ensure_tables(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                );
                """
            )

    def get(self, key: str) -> Optional[bytes]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    def set(self, key: str, value: bytes) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, sqlite3.Binary(value)),
            )


__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "SQLiteKeyValueStore"]
