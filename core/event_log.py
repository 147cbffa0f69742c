"""Fixed-capacity ring buffer for event and alert history."""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, TypeVar


T = TypeVar("T")


class BoundedLog(Generic[T]):
    """Keep the most recent ``capacity`` entries, evicting the oldest first."""

    def __init__(self, capacity: int, *, name: str = "") -> None:
        if int(capacity) <= 0:
            raise ValueError(f"capacity must be positive, got {capacity!r}")
        self._capacity = int(capacity)
        self._name = name
        self._entries: Deque[T] = deque(maxlen=self._capacity)
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def name(self) -> str:
        return self._name

    @property
    def evicted(self) -> int:
        """Number of entries dropped from the front so far."""

        return self._evicted

    def append(self, entry: T) -> None:
        if len(self._entries) == self._capacity:
            self._evicted += 1
        self._entries.append(entry)

    def recent(self, limit: int | None = None) -> list[T]:
        """Return up to ``limit`` entries, newest first."""

        entries = list(reversed(self._entries))
        if limit is None:
            return entries
        return entries[: max(int(limit), 0)]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._entries))
