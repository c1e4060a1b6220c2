"""Small TTL cache used in front of remote fetches."""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and its validity window."""

    value: T
    stored_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now < self.stored_at + self.ttl


class TTLCache(Generic[T]):
    """Key/value cache whose entries are served only while fresh.

    Expired entries are dropped lazily on read.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}

    def get(self, key: Hashable) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        return entry.value

    def entry(self, key: Hashable) -> Optional[CacheEntry[T]]:
        """Return the raw entry if it is still fresh."""
        if self.get(key) is None:
            return None
        return self._entries[key]

    def set(self, key: Hashable, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=self.ttl)

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
