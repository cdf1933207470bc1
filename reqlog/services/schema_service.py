from __future__ import annotations

import logging
from pathlib import Path

from reqlog.core.errors import ConfigError
from reqlog.storage.adapter import StorageAdapter

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"
SCHEMA_FILES = {
    "sqlite": MIGRATIONS_DIR / "0001_request_log.sqlite.sql",
    "mssql": MIGRATIONS_DIR / "0001_request_log.mssql.sql",
}


class SchemaService:
    """Creates the ``request_log`` table for a store handle if it is missing."""

    def __init__(self, storage_adapter: StorageAdapter) -> None:
        self._storage_adapter = storage_adapter
        self._logger = logging.getLogger(__name__)

    def ensure_schema(self) -> None:
        backend = self._storage_adapter.backend
        script_path = SCHEMA_FILES.get(backend)
        if script_path is None or not self._storage_adapter.supports_feature("scripts"):
            raise ConfigError(
                f"No request_log schema available for backend {backend!r}",
                remediation="Create the request_log table manually for this store.",
            )

        script = script_path.read_text(encoding="utf-8")
        self._storage_adapter.connect()
        self._logger.info(
            "Ensuring request_log schema",
            extra={"operation": "ensure_schema", "backend": backend},
        )
        try:
            self._storage_adapter.execute_script(script)
        except Exception:
            self._logger.error(
                "Schema setup failed",
                extra={"operation": "ensure_schema", "backend": backend},
                exc_info=True,
            )
            raise


__all__ = ["SchemaService", "SCHEMA_FILES"]
