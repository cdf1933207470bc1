from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Mapping

import pyodbc

from reqlog.core.errors import (
    StoreConnectionAuthenticationError,
    StoreConnectionError,
    StoreConnectionFailureError,
    StoreConnectionTimeoutError,
)
from reqlog.lib.redaction import redact

from .adapter import Params, Row, StorageAdapter

_GO_SEPARATOR = re.compile(r"^[ \t]*GO[ \t]*$", re.IGNORECASE | re.MULTILINE)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MSSQLProfile:
    server: str
    database: str
    auth_type: str
    username: str | None = None
    password: str | None = None
    port: int | None = None
    driver: str = "ODBC Driver 18 for SQL Server"


class MSSQLAdapter(StorageAdapter):
    """SQL Server store handle. Autocommit, so each log insert is its own transaction."""

    backend: str = "mssql"

    def __init__(self, profile: MSSQLProfile, *, timeout: int = 5) -> None:
        self._profile = profile
        self._timeout = timeout
        self._connection: Any = None
        # pyodbc connections must not be used by two threads at once
        self._lock = threading.RLock()

    def connect(self) -> None:
        with self._lock:
            if self._connection is not None:
                return
            try:
                self._connection = pyodbc.connect(
                    self._build_connection_string(), timeout=self._timeout, autocommit=True
                )
            except pyodbc.Error as exc:  # pragma: no cover - connection failure path
                raise self._translate_exception(exc) from exc

    def close(self) -> None:
        with self._lock:
            if self._connection is None:
                return
            self._connection.close()
            self._connection = None

    def execute(self, sql: str, params: Params = ()) -> int:
        with self._lock:
            cursor = self._run(sql, params)
            try:
                return max(cursor.rowcount, 0)
            finally:
                cursor.close()

    def query(self, sql: str, params: Params = ()) -> list[Row]:
        with self._lock:
            cursor = self._run(sql, params)
            try:
                columns = [column[0] for column in cursor.description or ()]
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
            finally:
                cursor.close()

    def execute_script(self, sql: str) -> None:
        for batch in _GO_SEPARATOR.split(sql):
            if batch.strip():
                self.execute(batch)

    def supports_feature(self, feature: str) -> bool:
        features = {
            "scripts": True,
            "datetime2": True,
        }
        return features.get(feature, False)

    def _run(self, sql: str, params: Params) -> Any:
        # Caller holds self._lock
        if self._connection is None:
            self.connect()
        assert self._connection is not None
        cursor = self._connection.cursor()
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
        except pyodbc.Error as exc:  # pragma: no cover - SQL execution error path
            cursor.close()
            raise self._translate_exception(exc) from exc
        return cursor

    def _build_connection_string(self) -> str:
        profile = self._profile
        server = profile.server
        if profile.port:
            server = f"{server},{profile.port}"
        parts: list[str] = [
            f"DRIVER={{{profile.driver}}}",
            f"SERVER={server}",
            f"DATABASE={profile.database}",
        ]
        if profile.auth_type == "sql":
            if profile.username:
                parts.append(f"UID={profile.username}")
            if profile.password:
                parts.append(f"PWD={profile.password}")
        else:
            parts.append("Trusted_Connection=yes")
        parts.append("Encrypt=yes")
        parts.append("TrustServerCertificate=yes")
        return ";".join(parts)

    def sanitized_profile(self) -> Mapping[str, Any]:
        return {
            "server": self._profile.server,
            "database": self._profile.database,
            "auth_type": self._profile.auth_type,
            "username": self._profile.username,
            "port": self._profile.port,
            "driver": self._profile.driver,
        }

    def _translate_exception(self, exc: BaseException) -> StoreConnectionError:
        message = " ".join(str(part) for part in exc.args) or str(exc)
        logger.debug(
            "MSSQL driver error",
            extra={
                "backend": self.backend,
                "store_profile": self.sanitized_profile(),
                "driver_message": redact(message),
            },
        )
        lowered = message.lower()
        if "hyt00" in lowered or "timeout" in lowered:
            return StoreConnectionTimeoutError(
                "The request log store timed out.",
                title="Log Store Timeout",
                remediation="Verify network connectivity and that the SQL Server is reachable, then retry.",
            )
        if "28000" in lowered or "login failed" in lowered:
            return StoreConnectionAuthenticationError(
                "Authentication with the request log store failed.",
                title="Log Store Authentication Failed",
                remediation="Confirm username/password or Windows authentication settings.",
            )
        return StoreConnectionFailureError(
            f"Request log store error: {redact(message)}",
            title="Log Store Failure",
            remediation="Check the server address, port, firewall settings and the request_log table.",
        )


__all__ = ["MSSQLAdapter", "MSSQLProfile"]
