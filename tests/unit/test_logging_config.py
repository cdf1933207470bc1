from __future__ import annotations

import json
import logging

import pytest

from reqlog.logging.config import JsonFormatter, SensitiveDataFilter, configure_logging


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="reqlog.test",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras() -> None:
    record = _record("store failed", request_id="abc", backend="sqlite")
    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert payload["logger"] == "reqlog.test"
    assert payload["message"] == "store failed"
    assert payload["context"] == {"request_id": "abc", "backend": "sqlite"}


def test_sensitive_filter_masks_keys_and_message() -> None:
    record = _record("connect PWD=secret1;", mssql_password="secret2")

    assert SensitiveDataFilter().filter(record) is True
    assert record.mssql_password == "***"
    assert "secret1" not in record.getMessage()


@pytest.fixture
def package_logger():
    target = logging.getLogger("reqlog")
    saved = (list(target.handlers), target.level)
    yield target
    target.handlers[:] = saved[0]
    target.setLevel(saved[1])


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(self.format(record))


def test_configure_logging_formats_child_records(package_logger) -> None:
    capture = _Capture()
    configure_logging(level=logging.DEBUG, handler=capture)

    logging.getLogger("reqlog.services.sinks").error(
        "Request log store append failed", extra={"request_id": "r1", "secret": "x"}
    )

    payload = json.loads(capture.lines[-1])
    assert payload["logger"] == "reqlog.services.sinks"
    assert payload["context"]["request_id"] == "r1"
    assert payload["context"]["secret"] == "***"
    assert package_logger.level == logging.DEBUG
