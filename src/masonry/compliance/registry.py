"""Deduplicating key-indexed store shared by the loader's worker threads."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class AddResult(str, Enum):
    ADDED = "added"
    ALREADY_EXISTS = "already_exists"


class Registry(Generic[T]):
    """Map of key -> value where a key, once admitted, is never replaced.

    add() is the only mutator and is serialized by a lock. Reads are meant
    for after loading has finished and take no lock.
    """

    def __init__(self) -> None:
        self._items: dict[str, T] = {}
        self._lock = threading.Lock()

    def add(self, key: str, value: T) -> AddResult:
        """Admit value under key unless the key is already present."""
        with self._lock:
            if key in self._items:
                return AddResult.ALREADY_EXISTS
            self._items[key] = value
            return AddResult.ADDED

    def get(self, key: str) -> Optional[T]:
        return self._items.get(key)

    def all(self) -> list[tuple[str, T]]:
        return list(self._items.items())

    def keys(self) -> list[str]:
        return list(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))
