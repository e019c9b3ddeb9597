"""SQLite connection management for the dedup history."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict

SCHEMA_VERSION = 1

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS kit_history (
        identifier TEXT PRIMARY KEY,
        url TEXT NOT NULL,
        source TEXT,
        first_seen TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_kit_history_first_seen ON kit_history(first_seen)",
)


class SQLiteManager:
    """Hand out one shared connection per database file.

    Connections are opened with ``check_same_thread=False``; callers
    serialise writes themselves (see ``DedupStore``).
    """

    def __init__(self, busy_timeout: float = 5.0) -> None:
        self.busy_timeout = busy_timeout
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        with self._lock:
            conn = self._connections.get(path)
            if conn is None:
                path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(path, timeout=self.busy_timeout, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                self._migrate(conn)
                self._connections[path] = conn
            return conn

    @staticmethod
    def _migrate(conn: sqlite3.Connection) -> None:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        if version >= SCHEMA_VERSION:
            return
        with conn:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def reset(self, path: Path) -> None:
        """Close and delete the database file, WAL side files included."""

        with self._lock:
            conn = self._connections.pop(path, None)
        if conn is not None:
            conn.close()
        for suffix in ("", "-wal", "-shm"):
            side = path.with_name(path.name + suffix)
            if side.exists():
                side.unlink()

    def close_all(self) -> None:
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for conn in connections:
            conn.close()


__all__ = ["SCHEMA_VERSION", "SQLiteManager"]
