from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from .adapter import Params, Row, StorageAdapter


class SQLiteAdapter(StorageAdapter):
    backend: str = "sqlite"

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        self._connection: sqlite3.Connection | None = None
        # One connection shared by every request thread
        self._lock = threading.RLock()

    def connect(self) -> None:
        with self._lock:
            if self._connection is not None:
                return

            self._connection = sqlite3.connect(
                self._db_path,
                timeout=30.0,
                isolation_level=None,
                check_same_thread=False,
            )
            self._connection.row_factory = sqlite3.Row
            self._apply_pragmas()

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None

    def execute(self, sql: str, params: Params = ()) -> int:
        with self._lock:
            cursor = self._ensure_connection().execute(sql, params)
            return max(cursor.rowcount, 0)

    def query(self, sql: str, params: Params = ()) -> list[Row]:
        with self._lock:
            rows = self._ensure_connection().execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def execute_script(self, sql: str) -> None:
        with self._lock:
            self._ensure_connection().executescript(sql)

    def supports_feature(self, feature: str) -> bool:
        features = {
            "scripts": True,
            "wal": self._db_path != ":memory:",
        }
        return features.get(feature, False)

    def _ensure_connection(self) -> sqlite3.Connection:
        # Caller holds self._lock
        if self._connection is None:
            self.connect()
        assert self._connection is not None
        return self._connection

    def _apply_pragmas(self) -> None:
        assert self._connection is not None
        cursor = self._connection.cursor()
        if self.supports_feature("wal"):
            cursor.execute("PRAGMA journal_mode = WAL")
        cursor.execute("PRAGMA synchronous = NORMAL")
        cursor.execute("PRAGMA busy_timeout = 5000")
        cursor.close()

    def __repr__(self) -> str:
        return f"SQLiteAdapter({self._db_path!r})"


__all__ = ["SQLiteAdapter"]
