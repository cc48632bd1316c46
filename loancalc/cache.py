"""A simple thread-safe in-memory store of calculation results."""

from __future__ import annotations

import threading
from typing import Any


class Cache:
    """Append-only in-memory list whose operations are safe across threads."""

    def __init__(self) -> None:
        self._items: list[Any] = []
        self._lock = threading.Lock()

    def add(self, item: Any) -> int:
        """Store ``item`` and return its position, which serves as its id."""
        with self._lock:
            self._items.append(item)
            return len(self._items) - 1

    def get_all(self) -> list[Any]:
        """Return a snapshot of every stored item, oldest first."""
        with self._lock:
            return list(self._items)