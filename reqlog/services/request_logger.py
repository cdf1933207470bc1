"""Per-request log trail.

A ``RequestLogger`` is built once per scope from a ``LoggerConfig`` and a
``RequestContext``. ``log`` decides admission from the level and the debug
flag before the sink is ever touched; admitted entries get the request's
correlation id, allocated on the first admitted entry only.

Components that want to log take a ``RequestLog`` as a constructor
dependency and get a ``NullLogger`` when the caller has nothing to offer.
"""
from __future__ import annotations

import contextlib
import logging
import time
import uuid
from datetime import datetime
from typing import ContextManager, FrozenSet, Iterable, List, Optional, Protocol

from reqlog.core.config import LoggerConfig, SinkMode
from reqlog.core.context import RequestContext
from reqlog.core.models import Level, LogEntry, clip_text
from reqlog.services.report import NO_ENTRIES_NOTICE, OutputSink, StreamOutput, render_report
from reqlog.services.sinks import LogSink, MemorySink, StoreSink
from reqlog.storage.adapter import StorageAdapter

CORRELATION_KEY = "reqlog.request_id"

logger = logging.getLogger(__name__)


class RequestLog(Protocol):
    def log(self, text: object, level: Level | str = Level.INFO, category: str = "") -> bool:
        ...

    def get_entries(self, category: str = "") -> List[LogEntry]:
        ...

    def render(self, category: str = "", output: Optional[OutputSink] = None) -> None:
        ...


def parse_categories(category: Optional[str]) -> FrozenSet[str]:
    if not category:
        return frozenset()
    return frozenset(token.strip().lower() for token in category.split(",") if token.strip())


def filter_by_category(entries: Iterable[LogEntry], category: Optional[str]) -> List[LogEntry]:
    """Keep entries whose category equals one of the comma-separated names, ignoring case."""
    wanted = parse_categories(category)
    if not wanted:
        return list(entries)
    return [entry for entry in entries if entry.category.strip().lower() in wanted]


class RequestLogger:
    def __init__(
        self,
        config: LoggerConfig,
        context: Optional[RequestContext] = None,
        *,
        output: Optional[OutputSink] = None,
    ) -> None:
        self._config = config
        self._context = context if context is not None else RequestContext()
        self._output: OutputSink = output if output is not None else StreamOutput()
        self._sink = self._build_sink()

    @classmethod
    def create(
        cls,
        *,
        debug: bool = False,
        sink_mode: SinkMode | str = SinkMode.MEMORY,
        store: Optional[StorageAdapter] = None,
        context: Optional[RequestContext] = None,
        output: Optional[OutputSink] = None,
    ) -> "RequestLogger":
        config = LoggerConfig(debug_enabled=debug, sink_mode=sink_mode, store=store)
        return cls(config, context, output=output)

    def for_request(self, context: RequestContext) -> "RequestLogger":
        return RequestLogger(self._config, context, output=self._output)

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def context(self) -> RequestContext:
        return self._context

    @property
    def sink(self) -> LogSink:
        return self._sink

    @property
    def correlation_id(self) -> Optional[str]:
        return self._context.get(CORRELATION_KEY)

    def admits(self, level: Level | str) -> bool:
        parsed = Level.parse(level)
        if parsed is Level.INFO:
            return self._config.debug_enabled
        return True

    def log(self, text: object, level: Level | str = Level.INFO, category: str = "") -> bool:
        """Record ``text`` if the level is admitted. Returns whether it was."""
        parsed = Level.parse(level)
        if not self.admits(parsed):
            return False

        with self._append_guard():
            entry = LogEntry(
                level=parsed,
                category=category or "",
                text=clip_text(text),
                origin=self._config.origin,
                correlation_id=self._ensure_correlation_id(),
                sequence=self._context.next_sequence(),
                recorded_at=datetime.now(),
                tick=time.monotonic_ns() // 1_000_000,
            )
            self._sink.append(entry)
        return True

    def get_entries(self, category: str = "") -> List[LogEntry]:
        correlation_id = self.correlation_id
        if correlation_id is None:
            return []
        return filter_by_category(self._sink.query(correlation_id), category)

    def render(self, category: str = "", output: Optional[OutputSink] = None) -> None:
        target = output if output is not None else self._output
        entries = self.get_entries(category)
        if not entries:
            target.emit(NO_ENTRIES_NOTICE)
            return
        target.emit(render_report(entries, show_ticks=self._sink.shows_ticks))

    def _build_sink(self) -> LogSink:
        if self._config.sink_mode is SinkMode.STORE:
            assert self._config.store is not None
            return StoreSink(self._config.store)
        return MemorySink(self._context)

    def _append_guard(self) -> ContextManager[object]:
        # Memory appends must not interleave with sequence allocation
        if isinstance(self._sink, MemorySink):
            return self._context.lock
        return contextlib.nullcontext()

    def _ensure_correlation_id(self) -> str:
        with self._context.lock:
            correlation_id = self._context.get(CORRELATION_KEY)
            if correlation_id is None:
                correlation_id = str(uuid.uuid4())
                self._context.set(CORRELATION_KEY, correlation_id)
                logger.debug(
                    "Allocated request log id",
                    extra={"request_id": correlation_id, "sink": self._config.sink_mode.value},
                )
            return correlation_id


class NullLogger:
    """Accepts every call and keeps nothing."""

    correlation_id: Optional[str] = None

    def log(self, text: object, level: Level | str = Level.INFO, category: str = "") -> bool:
        Level.parse(level)
        return False

    def get_entries(self, category: str = "") -> List[LogEntry]:
        return []

    def render(self, category: str = "", output: Optional[OutputSink] = None) -> None:
        return None


__all__ = [
    "CORRELATION_KEY",
    "RequestLog",
    "RequestLogger",
    "NullLogger",
    "filter_by_category",
    "parse_categories",
]
