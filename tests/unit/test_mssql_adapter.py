from __future__ import annotations

import logging
import threading
import time

import pytest

pytest.importorskip("pyodbc")

from reqlog.core.errors import (  # noqa: E402
    StoreConnectionAuthenticationError,
    StoreConnectionFailureError,
    StoreConnectionTimeoutError,
)
from reqlog.storage.mssql_adapter import MSSQLAdapter, MSSQLProfile  # noqa: E402


class DummyError(Exception):
    def __init__(self, *args: str) -> None:
        super().__init__(*args)
        self.args = args


class FakeCursor:
    def __init__(self, log: list) -> None:
        self._log = log
        self.rowcount = 1
        self.description = [("logid",), ("log_text",)]

    def execute(self, sql, *params):
        self._log.append((sql.strip(), params))

    def fetchall(self):
        return [(1, "hello")]

    def close(self):
        pass


class FakeConnection:
    def __init__(self) -> None:
        self.log: list = []

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.log)

    def close(self) -> None:
        pass


@pytest.fixture
def adapter() -> MSSQLAdapter:
    return MSSQLAdapter(MSSQLProfile(server="example", database="db", auth_type="sql"))


def test_translate_timeout(adapter: MSSQLAdapter) -> None:
    mapped = adapter._translate_exception(DummyError("[HYT00]", "timeout occurred"))  # type: ignore[attr-defined]
    assert isinstance(mapped, StoreConnectionTimeoutError)


def test_translate_auth_failure(adapter: MSSQLAdapter) -> None:
    mapped = adapter._translate_exception(DummyError("[28000]", "Login failed for user"))  # type: ignore[attr-defined]
    assert isinstance(mapped, StoreConnectionAuthenticationError)


def test_translate_generic_failure_redacts(adapter: MSSQLAdapter) -> None:
    mapped = adapter._translate_exception(DummyError("[08001]", "network error PWD=abc"))  # type: ignore[attr-defined]
    assert isinstance(mapped, StoreConnectionFailureError)
    assert "abc" not in str(mapped)


def test_connection_string_for_sql_auth() -> None:
    adapter = MSSQLAdapter(
        MSSQLProfile(
            server="srv",
            database="logs",
            auth_type="sql",
            username="user",
            password="secret",
            port=1444,
        )
    )
    conn_str = adapter._build_connection_string()  # type: ignore[attr-defined]
    assert "SERVER=srv,1444" in conn_str
    assert "UID=user" in conn_str
    assert "PWD=secret" in conn_str
    assert "Trusted_Connection" not in conn_str


def test_connection_string_for_windows_auth() -> None:
    adapter = MSSQLAdapter(MSSQLProfile(server="srv", database="logs", auth_type="windows"))
    conn_str = adapter._build_connection_string()  # type: ignore[attr-defined]
    assert "Trusted_Connection=yes" in conn_str
    assert "PWD" not in conn_str


def test_sanitized_profile_omits_password() -> None:
    adapter = MSSQLAdapter(
        MSSQLProfile(server="srv", database="demo", auth_type="sql", username="user", password="secret")
    )
    assert "password" not in adapter.sanitized_profile()


def test_query_returns_column_dicts(adapter: MSSQLAdapter) -> None:
    connection = FakeConnection()
    adapter._connection = connection  # type: ignore[attr-defined]

    rows = adapter.query("SELECT logid, log_text FROM request_log WHERE request_id = ?", ("r1",))

    assert rows == [{"logid": 1, "log_text": "hello"}]
    assert connection.log == [
        ("SELECT logid, log_text FROM request_log WHERE request_id = ?", (("r1",),))
    ]


def test_execute_script_splits_go_batches(adapter: MSSQLAdapter) -> None:
    connection = FakeConnection()
    adapter._connection = connection  # type: ignore[attr-defined]

    adapter.execute_script("CREATE TABLE a (x INT)\nGO\n\ngo\nCREATE TABLE b (y INT)\n")

    assert [sql for sql, _ in connection.log] == ["CREATE TABLE a (x INT)", "CREATE TABLE b (y INT)"]


class TrackingCursor(FakeCursor):
    def __init__(self, owner: "TrackingConnection") -> None:
        super().__init__(owner.log)
        self._owner = owner

    def execute(self, sql, *params):
        time.sleep(0.001)
        super().execute(sql, *params)

    def close(self):
        with self._owner.guard:
            self._owner.active -= 1


class TrackingConnection(FakeConnection):
    """Counts cursors open at the same time."""

    def __init__(self) -> None:
        super().__init__()
        self.guard = threading.Lock()
        self.active = 0
        self.peak = 0

    def cursor(self) -> TrackingCursor:
        with self.guard:
            self.active += 1
            self.peak = max(self.peak, self.active)
        return TrackingCursor(self)


def test_shared_connection_is_used_by_one_thread_at_a_time(adapter: MSSQLAdapter) -> None:
    connection = TrackingConnection()
    adapter._connection = connection  # type: ignore[attr-defined]
    start = threading.Barrier(6)

    def work() -> None:
        start.wait()
        for index in range(20):
            if index % 2:
                adapter.query("SELECT logid, log_text FROM request_log WHERE request_id = ?", ("r1",))
            else:
                adapter.execute("INSERT INTO request_log (log_text) VALUES (?)", ("x",))

    threads = [threading.Thread(target=work) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(connection.log) == 120
    assert connection.peak == 1
    assert connection.active == 0


def test_driver_error_diagnostics_carry_sanitized_profile(caplog) -> None:
    adapter = MSSQLAdapter(
        MSSQLProfile(server="srv", database="logs", auth_type="sql", username="app", password="hunter2")
    )

    with caplog.at_level(logging.DEBUG, logger="reqlog.storage.mssql_adapter"):
        adapter._translate_exception(DummyError("[08001]", "network error"))  # type: ignore[attr-defined]

    (record,) = [r for r in caplog.records if r.getMessage() == "MSSQL driver error"]
    assert record.store_profile["server"] == "srv"
    assert "password" not in record.store_profile
    assert "hunter2" not in str(record.store_profile)
