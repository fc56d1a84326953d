"""
In-process result store with bounded size.

Eviction strategies:
- lru: least recently read or written entry goes first
- lfu: least frequently read entry goes first (oldest wins ties)
- ttl: entry closest to expiry goes first

Entries older than the TTL are never returned, whatever the strategy.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from triage.models import CacheStrategy, EnhancedIssueClassification


@dataclass
class _StoredResult:
    value: EnhancedIssueClassification
    stored_at: float
    reads: int = 0


class MemoryResultStore:
    """Thread-safe bounded result store."""

    backend = "memory"

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 3600,
        strategy: CacheStrategy = CacheStrategy.LRU,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.max_size = max_size
        self.ttl = ttl
        self.strategy = CacheStrategy(strategy)
        self._clock = clock or time.monotonic
        self._entries: "OrderedDict[str, _StoredResult]" = OrderedDict()
        self._lock = threading.Lock()
        self.evictions = 0

    def _expired(self, entry: _StoredResult, now: float) -> bool:
        # ttl 0 keeps entries until evicted, as RedisResultStore does
        return self.ttl > 0 and now - entry.stored_at >= self.ttl

    def get(self, key: str) -> Optional[EnhancedIssueClassification]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self._clock()):
                del self._entries[key]
                return None
            entry.reads += 1
            if self.strategy == CacheStrategy.LRU:
                self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: EnhancedIssueClassification) -> None:
        if self.max_size <= 0:
            return
        with self._lock:
            now = self._clock()
            self._entries.pop(key, None)
            self._purge_expired(now)
            while len(self._entries) >= self.max_size:
                self._evict_one()
            self._entries[key] = _StoredResult(value=value, stored_at=now)

    def _purge_expired(self, now: float) -> None:
        for key in [k for k, entry in self._entries.items() if self._expired(entry, now)]:
            del self._entries[key]

    def _evict_one(self) -> None:
        if self.strategy == CacheStrategy.LFU:
            # min() keeps the first (oldest) key among equal read counts
            victim = min(self._entries, key=lambda k: self._entries[k].reads)
        else:
            # Insertion order is recency order for lru and age order for ttl
            victim = next(iter(self._entries))
        del self._entries[victim]
        self.evictions += 1

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def info(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "size": len(self),
            "max_size": self.max_size,
            "strategy": self.strategy.value,
            "evictions": self.evictions,
        }
