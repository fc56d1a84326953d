"""Classification result cache with graceful degradation."""

import threading
from typing import Any, Dict, Optional, Protocol

from triage.logging import cache_logger
from triage.models import EnhancedIssueClassification


class ResultStore(Protocol):
    backend: str

    def get(self, key: str) -> Optional[EnhancedIssueClassification]: ...

    def set(self, key: str, value: EnhancedIssueClassification) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...

    def info(self) -> Dict[str, Any]: ...


class ClassificationCache:
    """
    Fingerprint-keyed cache in front of a result store.

    Store failures never reach the caller: a failed read is a miss and a
    failed write is skipped. Hits come back with `cache_hit` set.
    """

    def __init__(self, store: ResultStore, enabled: bool = True):
        self.store = store
        self.enabled = enabled
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.errors = 0

    def _count(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def get(self, fingerprint: str) -> Optional[EnhancedIssueClassification]:
        if not self.enabled:
            return None
        try:
            cached = self.store.get(fingerprint)
        except Exception as e:
            self._count("errors")
            cache_logger.warning("result_cache_read_failed", backend=self.store.backend, error=str(e))
            return None

        if cached is None:
            self._count("misses")
            return None
        self._count("hits")
        cache_logger.debug("cache_hit", fingerprint=fingerprint)
        return cached.model_copy(update={"cache_hit": True})

    def put(self, fingerprint: str, result: EnhancedIssueClassification) -> None:
        if not self.enabled:
            return
        stored = result.model_copy(update={"cache_hit": False}) if result.cache_hit else result
        try:
            self.store.set(fingerprint, stored)
        except Exception as e:
            self._count("errors")
            cache_logger.warning("result_cache_write_failed", backend=self.store.backend, error=str(e))

    def clear(self) -> None:
        try:
            self.store.clear()
        except Exception as e:
            self._count("errors")
            cache_logger.warning("result_cache_clear_failed", backend=self.store.backend, error=str(e))

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            hits, misses, errors = self.hits, self.misses, self.errors
        lookups = hits + misses
        try:
            store_info = self.store.info()
        except Exception as e:
            store_info = {"backend": self.store.backend, "error": str(e)}
        return {
            "enabled": self.enabled,
            "hits": hits,
            "misses": misses,
            "errors": errors,
            "hit_rate": round(hits / lookups, 4) if lookups else 0.0,
            **store_info,
        }
