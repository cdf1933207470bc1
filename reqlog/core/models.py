from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from reqlog.core.errors import InvalidLevelError

MAX_TEXT_LENGTH = 8000


class Level(enum.Enum):
    """Entry severity. The value is the one-char code stored in ``logtype``."""

    INFO = "I"
    WARNING = "W"
    ERROR = "E"

    @property
    def code(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def parse(cls, token: "Level | str") -> "Level":
        if isinstance(token, Level):
            return token
        if not isinstance(token, str):
            raise InvalidLevelError(token)
        level = _LEVEL_ALIASES.get(token.strip().lower())
        if level is None:
            raise InvalidLevelError(token)
        return level

    @classmethod
    def from_code(cls, code: str) -> "Level":
        # Codes read back from the store may be padded CHAR(1) values
        return cls.parse((code or "").strip())


_LEVEL_ALIASES: Mapping[str, Level] = {
    "i": Level.INFO,
    "info": Level.INFO,
    "w": Level.WARNING,
    "warn": Level.WARNING,
    "warning": Level.WARNING,
    "e": Level.ERROR,
    "error": Level.ERROR,
}


@dataclass(slots=True)
class LogEntry:
    level: Level
    category: str
    text: str
    origin: str
    correlation_id: str
    sequence: int
    recorded_at: datetime
    tick: Optional[int] = None


def clip_text(text: object) -> str:
    if text is None:
        return ""
    value = text if isinstance(text, str) else str(text)
    return value[:MAX_TEXT_LENGTH]


__all__ = ["Level", "LogEntry", "MAX_TEXT_LENGTH", "clip_text"]
