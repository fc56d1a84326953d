"""
In-process TTL cache for loaded configuration documents.

The store takes its caches as constructor arguments so every store (and every
test) can own isolated state.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, Protocol, TypeVar

T = TypeVar("T")


@dataclass
class ConfigCacheEntry(Generic[T]):
    """A cached value with the time it was stored and its time-to-live in seconds."""
    value: T
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp >= self.ttl


class ConfigCache(Protocol[T]):
    """Cache interface used by the configuration store."""

    def get(self, key: str) -> Optional[T]: ...

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


class InMemoryConfigCache(Generic[T]):
    """
    Thread-safe TTL cache.

    Expired entries are dropped lazily on read. `clock` defaults to
    time.monotonic and can be replaced in tests.
    """

    def __init__(self, default_ttl: float = 300.0, clock: Optional[Callable[[], float]] = None):
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._entries: Dict[str, ConfigCacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        entry = ConfigCacheEntry(
            value=value,
            timestamp=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["ConfigCache", "ConfigCacheEntry", "InMemoryConfigCache"]
