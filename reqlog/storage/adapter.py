from __future__ import annotations

import abc
from typing import Any, Dict, Mapping, Sequence, Union

Params = Union[Sequence[Any], Mapping[str, Any]]
Row = Dict[str, Any]


class StorageAdapter(abc.ABC):
    """Store handle used by the durable sink: run a parameterized statement, get rows back."""

    backend: str = "unknown"

    @abc.abstractmethod
    def connect(self) -> None:
        """Open the underlying connection; a no-op when already open."""

    @abc.abstractmethod
    def close(self) -> None:
        ...

    @abc.abstractmethod
    def execute(self, sql: str, params: Params = ()) -> Any:
        """Run a statement that returns no rows. Changes are committed on return."""

    @abc.abstractmethod
    def query(self, sql: str, params: Params = ()) -> list[Row]:
        """Run a SELECT and return rows as column-name dictionaries."""

    @abc.abstractmethod
    def execute_script(self, sql: str) -> None:
        ...

    def supports_feature(self, feature: str) -> bool:
        return False


__all__ = ["Params", "Row", "StorageAdapter"]
