from __future__ import annotations

import abc
import logging
from datetime import datetime
from typing import Any, List

from reqlog.core.context import RequestContext
from reqlog.core.errors import SinkIOError
from reqlog.core.models import Level, LogEntry
from reqlog.lib.redaction import redact
from reqlog.storage.adapter import Row, StorageAdapter

logger = logging.getLogger(__name__)

BUFFER_KEY = "reqlog.entries"

INSERT_ENTRY_SQL = (
    "INSERT INTO request_log (logtype, category, log_text, server_name, request_id) "
    "VALUES (?, ?, ?, ?, ?)"
)
# logtime is display-only; logtime_precise (tie-broken by logid) is the sort key
SELECT_ENTRIES_SQL = (
    "SELECT logid, logtime, logtype, category, log_text, server_name, request_id "
    "FROM request_log WHERE request_id = ? "
    "ORDER BY logtime_precise, logid"
)


class LogSink(abc.ABC):
    """Where admitted entries live."""

    shows_ticks: bool = False

    @abc.abstractmethod
    def append(self, entry: LogEntry) -> None:
        ...

    @abc.abstractmethod
    def query(self, correlation_id: str) -> List[LogEntry]:
        """Return every entry for ``correlation_id`` in admission order."""


class MemorySink(LogSink):
    """Keeps entries in a list living inside the request context."""

    shows_ticks = True

    def __init__(self, context: RequestContext) -> None:
        self._context = context

    def append(self, entry: LogEntry) -> None:
        with self._context.lock:
            buffer = self._context.get(BUFFER_KEY)
            if buffer is None:
                buffer = []
                self._context.set(BUFFER_KEY, buffer)
            buffer.append(entry)

    def query(self, correlation_id: str) -> List[LogEntry]:
        with self._context.lock:
            buffer = self._context.get(BUFFER_KEY) or []
            return [entry for entry in buffer if entry.correlation_id == correlation_id]


class StoreSink(LogSink):
    """Persists entries as ``request_log`` rows through a store handle."""

    def __init__(self, store: StorageAdapter) -> None:
        self._store = store

    @property
    def store(self) -> StorageAdapter:
        return self._store

    def append(self, entry: LogEntry) -> None:
        params = (
            entry.level.code,
            entry.category or None,
            entry.text,
            entry.origin,
            entry.correlation_id,
        )
        try:
            self._store.execute(INSERT_ENTRY_SQL, params)
        except Exception as exc:
            raise self._failure("append", entry.correlation_id, exc) from exc

    def query(self, correlation_id: str) -> List[LogEntry]:
        try:
            rows = self._store.query(SELECT_ENTRIES_SQL, (correlation_id,))
        except Exception as exc:
            raise self._failure("query", correlation_id, exc) from exc
        return [self._to_entry(row) for row in rows]

    def _failure(self, operation: str, correlation_id: str, exc: Exception) -> SinkIOError:
        logger.error(
            "Request log store %s failed",
            operation,
            extra={
                "operation": operation,
                "backend": self._store.backend,
                "request_id": correlation_id,
                "error_class": exc.__class__.__name__,
                "error_message": redact(str(exc))[:200],
            },
        )
        return SinkIOError(f"Request log {operation} failed: {redact(str(exc))}", cause=exc)

    @staticmethod
    def _to_entry(row: Row) -> LogEntry:
        return LogEntry(
            level=Level.from_code(row["logtype"]),
            category=row.get("category") or "",
            text=row["log_text"],
            origin=row["server_name"],
            correlation_id=row["request_id"],
            sequence=int(row["logid"]),
            recorded_at=_to_datetime(row["logtime"]),
        )


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


__all__ = [
    "BUFFER_KEY",
    "INSERT_ENTRY_SQL",
    "SELECT_ENTRIES_SQL",
    "LogSink",
    "MemorySink",
    "StoreSink",
]
