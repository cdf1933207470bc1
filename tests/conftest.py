from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from reqlog.core.context import RequestContext
from reqlog.services.schema_service import SchemaService
from reqlog.storage.sqlite_adapter import SQLiteAdapter

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app():
    QtWidgets = pytest.importorskip("PySide6.QtWidgets")
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


@pytest.fixture
def context() -> RequestContext:
    return RequestContext()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> Iterator[SQLiteAdapter]:
    adapter = SQLiteAdapter(tmp_path / "request_log.sqlite")
    SchemaService(adapter).ensure_schema()
    yield adapter
    adapter.close()
