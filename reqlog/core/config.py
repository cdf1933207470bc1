from __future__ import annotations

import enum
import socket
from dataclasses import dataclass, field
from typing import Optional

from reqlog.core.errors import ConfigError
from reqlog.storage.adapter import StorageAdapter


class SinkMode(enum.Enum):
    MEMORY = "memory"
    STORE = "store"

    @classmethod
    def parse(cls, value: "SinkMode | str") -> "SinkMode":
        if isinstance(value, SinkMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ConfigError(
                f"Unknown sink mode: {value!r}",
                remediation="Use 'memory' or 'store'.",
            ) from None


@dataclass(frozen=True)
class LoggerConfig:
    debug_enabled: bool = False
    sink_mode: SinkMode = SinkMode.MEMORY
    store: Optional[StorageAdapter] = None
    origin: str = field(default_factory=socket.gethostname)

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "sink_mode", SinkMode.parse(self.sink_mode))
        object.__setattr__(self, "debug_enabled", bool(self.debug_enabled))
        if self.sink_mode is SinkMode.STORE and self.store is None:
            raise ConfigError(
                "A store handle is required when sink_mode is 'store'",
                remediation="Pass a connected StorageAdapter or switch to the memory sink.",
            )


__all__ = ["LoggerConfig", "SinkMode"]
