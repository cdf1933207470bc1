from __future__ import annotations

import logging
from typing import Mapping, Optional

from reqlog.core.models import Level
from reqlog.services.request_logger import RequestLog

_PACKAGE_LOGGER = "reqlog"

SEVERITY_MAP: Mapping[int, Level] = {
    logging.DEBUG: Level.INFO,
    logging.INFO: Level.INFO,
    logging.WARNING: Level.WARNING,
    logging.ERROR: Level.ERROR,
    logging.CRITICAL: Level.ERROR,
}


def level_for_record(record: logging.LogRecord) -> Level:
    mapped = SEVERITY_MAP.get(record.levelno)
    if mapped is not None:
        return mapped
    # Custom numeric levels fall into the nearest band
    if record.levelno >= logging.ERROR:
        return Level.ERROR
    if record.levelno >= logging.WARNING:
        return Level.WARNING
    return Level.INFO


class RequestLogHandler(logging.Handler):
    """Forward stdlib log records into a request's log trail."""

    def __init__(self, request_log: RequestLog, *, category: Optional[str] = None) -> None:
        super().__init__()
        self._request_log = request_log
        self._category = category

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        # Our own diagnostics would feed back into the sink that produced them
        if record.name == _PACKAGE_LOGGER or record.name.startswith(_PACKAGE_LOGGER + "."):
            return
        try:
            text = record.getMessage()
            if record.exc_info:
                formatter = self.formatter or logging.Formatter()
                text = f"{text}\n{formatter.formatException(record.exc_info)}"
            category = self._category if self._category is not None else record.name
            self._request_log.log(text, level_for_record(record), category)
        except Exception:
            self.handleError(record)


__all__ = ["RequestLogHandler", "SEVERITY_MAP", "level_for_record"]
