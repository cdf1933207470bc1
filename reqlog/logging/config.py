from __future__ import annotations

import json
import logging
from typing import Any, Optional

from reqlog.lib.redaction import MASK, is_sensitive_key, redact

JSON_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_STANDARD_RECORD_ATTRS = set(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime"}


class SensitiveDataFilter(logging.Filter):
    """Mask credential-looking extras and scrub the message text."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        for key in list(record.__dict__):
            if key not in _STANDARD_RECORD_ATTRS and is_sensitive_key(key):
                setattr(record, key, MASK)
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, dict):
            record.args = {
                key: (MASK if is_sensitive_key(str(key)) else value)
                for key, value in record.args.items()
            }
        return True


class JsonFormatter(logging.Formatter):
    """One compact JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: self._stringify(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        }
        if extras:
            payload["context"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)

    @staticmethod
    def _stringify(value: Any) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        return str(value)


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """Attach a JSON handler to the ``reqlog`` logger hierarchy."""

    package_logger = logging.getLogger("reqlog")
    package_logger.setLevel(level)

    if handler is None and any(
        isinstance(existing.formatter, JsonFormatter) for existing in package_logger.handlers
    ):
        return package_logger

    target = handler or logging.StreamHandler()
    target.setFormatter(JsonFormatter(JSON_LOG_FORMAT))
    # Handler-level so records from child loggers are filtered too
    target.addFilter(SensitiveDataFilter())
    package_logger.addHandler(target)
    return package_logger


__all__ = ["JsonFormatter", "configure_logging", "SensitiveDataFilter", "JSON_LOG_FORMAT"]
