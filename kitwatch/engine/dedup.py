"""Persistent record of candidate identifiers already processed."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock

from ..infra.storage import SQLiteManager
from .errors import StoreError


@dataclass(frozen=True, slots=True)
class DedupRecord:
    identifier: str
    first_seen: datetime
    url: str
    source: str | None = None


class DedupStore:
    """SQLite-backed set of seen identifiers.

    ``claim`` is the only check-and-insert entry point used by workers; the
    instance lock makes it atomic across threads sharing the store.
    """

    def __init__(self, manager: SQLiteManager, db_path: Path) -> None:
        self.manager = manager
        self.db_path = db_path
        self._lock = Lock()
        try:
            self._conn = self.manager.connect(db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open dedup store {db_path}: {exc}") from exc

    def seen(self, identifier: str) -> bool:
        with self._lock:
            try:
                cur = self._conn.execute(
                    "SELECT 1 FROM kit_history WHERE identifier = ?", (identifier,)
                )
                return cur.fetchone() is not None
            except sqlite3.Error as exc:
                raise StoreError(f"Dedup lookup failed: {exc}") from exc

    def record(self, identifier: str, url: str | None = None, source: str | None = None) -> None:
        """Mark ``identifier`` as seen; recording twice is a no-op."""

        self.claim(identifier, url=url, source=source)

    def claim(self, identifier: str, url: str | None = None, source: str | None = None) -> bool:
        """Insert ``identifier`` if absent. Returns True only for the first caller."""

        first_seen = datetime.now(timezone.utc).isoformat(timespec="seconds")
        with self._lock:
            try:
                cur = self._conn.execute(
                    "INSERT OR IGNORE INTO kit_history(identifier, url, source, first_seen) "
                    "VALUES (?, ?, ?, ?)",
                    (identifier, url or identifier, source, first_seen),
                )
                self._conn.commit()
            except sqlite3.Error as exc:
                raise StoreError(f"Dedup insert failed: {exc}") from exc
            return cur.rowcount == 1

    def forget(self, identifier: str) -> None:
        with self._lock:
            try:
                self._conn.execute("DELETE FROM kit_history WHERE identifier = ?", (identifier,))
                self._conn.commit()
            except sqlite3.Error as exc:
                raise StoreError(f"Dedup delete failed: {exc}") from exc

    def count(self) -> int:
        with self._lock:
            try:
                return self._conn.execute("SELECT count(*) FROM kit_history").fetchone()[0]
            except sqlite3.Error as exc:
                raise StoreError(f"Dedup count failed: {exc}") from exc

    def history(self, limit: int = 20) -> list[DedupRecord]:
        with self._lock:
            try:
                rows = self._conn.execute(
                    "SELECT identifier, url, source, first_seen FROM kit_history "
                    "ORDER BY first_seen DESC, rowid DESC LIMIT ?",
                    (limit,),
                ).fetchall()
            except sqlite3.Error as exc:
                raise StoreError(f"Dedup history failed: {exc}") from exc
        return [
            DedupRecord(
                identifier=row["identifier"],
                first_seen=datetime.fromisoformat(row["first_seen"]),
                url=row["url"],
                source=row["source"],
            )
            for row in rows
        ]

    def reset(self) -> None:
        with self._lock:
            try:
                self.manager.reset(self.db_path)
                self._conn = self.manager.connect(self.db_path)
            except (sqlite3.Error, OSError) as exc:
                raise StoreError(f"Dedup reset failed: {exc}") from exc


__all__ = ["DedupRecord", "DedupStore"]
