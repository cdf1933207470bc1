from __future__ import annotations

import logging
from typing import Mapping, Optional

from reqlog.core.config import LoggerConfig, SinkMode
from reqlog.core.context import RequestContext
from reqlog.core.errors import ConfigError
from reqlog.services.request_logger import RequestLogger
from reqlog.services.schema_service import SchemaService
from reqlog.storage.adapter import StorageAdapter

_TRUE_VALUES = {"1", "true", "yes", "on"}

logger = logging.getLogger(__name__)


def _flag(settings: Mapping[str, str], key: str) -> bool:
    return str(settings.get(key) or "").strip().lower() in _TRUE_VALUES


def _int(settings: Mapping[str, str], key: str, default: Optional[int]) -> Optional[int]:
    raw = str(settings.get(key) or "").strip()
    if not raw:
        return default
    if not raw.isdigit():
        raise ConfigError(f"Setting {key!r} must be a whole number, got {raw!r}")
    return int(raw)


def _required(settings: Mapping[str, str], key: str) -> str:
    value = str(settings.get(key) or "").strip()
    if not value:
        raise ConfigError(
            f"Setting {key!r} is required for the configured log store",
            remediation=f"Add {key!r} to the logger settings.",
        )
    return value


def open_store(settings: Mapping[str, str]) -> StorageAdapter:
    """Build (but do not connect) the store handle named by ``store_backend``."""
    backend = str(settings.get("store_backend") or "sqlite").strip().lower()

    if backend == "sqlite":
        from reqlog.storage.sqlite_adapter import SQLiteAdapter

        return SQLiteAdapter(_required(settings, "sqlite_path"))

    if backend == "mssql":
        from reqlog.storage.mssql_adapter import MSSQLAdapter, MSSQLProfile

        profile = MSSQLProfile(
            server=_required(settings, "mssql_server"),
            database=_required(settings, "mssql_database"),
            auth_type=str(settings.get("mssql_auth_type") or "windows").strip().lower(),
            username=settings.get("mssql_username") or None,
            password=settings.get("mssql_password") or None,
            port=_int(settings, "mssql_port", None),
        )
        return MSSQLAdapter(profile, timeout=_int(settings, "mssql_timeout_seconds", 5) or 5)

    raise ConfigError(
        f"Unknown store backend: {backend!r}",
        remediation="Use 'sqlite' or 'mssql'.",
    )


def build_logger(
    settings: Mapping[str, str],
    *,
    context: Optional[RequestContext] = None,
) -> RequestLogger:
    sink_mode = SinkMode.parse(settings.get("sink_mode") or SinkMode.MEMORY)
    store: Optional[StorageAdapter] = None
    if sink_mode is SinkMode.STORE:
        store = open_store(settings)
        store.connect()
        try:
            SchemaService(store).ensure_schema()
        except Exception:
            store.close()
            raise

    config = LoggerConfig(debug_enabled=_flag(settings, "debug"), sink_mode=sink_mode, store=store)
    logger.info(
        "Request logger configured",
        extra={
            "sink": sink_mode.value,
            "backend": store.backend if store is not None else None,
            "debug": config.debug_enabled,
        },
    )
    return RequestLogger(config, context)


__all__ = ["build_logger", "open_store"]
