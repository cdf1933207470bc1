from __future__ import annotations

import itertools
import threading
from typing import Any, Dict, Iterator, Optional


class RequestContext:
    """Key/value scope for one logical request.

    The host creates one per request and drops (or ``clear()``s) it when the
    request ends. ``lock`` is the single critical section shared by everything
    that lazily creates per-request state, so two tasks of the same request
    never allocate twice.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(values or {})
        self._sequence: Iterator[int] = itertools.count(1)
        self.lock = threading.RLock()

    def has(self, key: str) -> bool:
        return key in self._values

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def next_sequence(self) -> int:
        with self.lock:
            return next(self._sequence)

    def clear(self) -> None:
        with self.lock:
            self._values.clear()


__all__ = ["RequestContext"]
