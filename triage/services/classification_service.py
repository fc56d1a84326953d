"""
Classification Service - entry point tying configuration, engine and caches together.

Loads the effective configuration through the store, keeps one engine per
(repository, profile) pair and rebuilds it whenever the configuration
contents change.
"""

import threading
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from triage.cache import ClassificationCache, MemoryResultStore, RedisResultStore, get_redis_cache
from triage.classification import ClassificationEngine
from triage.classification.engine import IssueLike
from triage.config import Settings, get_settings
from triage.configuration import ConfigurationStore
from triage.logging import get_logger
from triage.models import (
    BatchClassificationResult,
    CachingConfig,
    EnhancedIssueClassification,
    RepositoryContext,
    TopTasksResult,
)

from .batch_service import BatchProcessor

logger = get_logger(__name__)

ContextArg = Union[RepositoryContext, Mapping, None]


def build_result_cache(
    caching: Optional[CachingConfig] = None, settings: Optional[Settings] = None
) -> ClassificationCache:
    """Result cache on the backend named by settings, sized by the caching config."""
    caching = caching or CachingConfig()
    settings = settings or get_settings()
    if settings.result_cache_backend == "redis":
        store: Any = RedisResultStore(
            get_redis_cache(), prefix=settings.result_cache_prefix, ttl=caching.ttl
        )
    else:
        store = MemoryResultStore(
            max_size=caching.max_size, ttl=caching.ttl, strategy=caching.strategy
        )
    return ClassificationCache(store, enabled=caching.enabled)


def _as_context(context: ContextArg) -> Optional[RepositoryContext]:
    if context is None or isinstance(context, RepositoryContext):
        return context
    return RepositoryContext.model_validate(dict(context))


class ClassificationService:
    """
    High-level classification API.

    Usage:
        service = ClassificationService()
        result = service.classify(issue, {"owner": "octo", "repo": "app"})
        batch = service.classify_batch(issues)
        top = service.top_tasks(issues, limit=5)
    """

    def __init__(
        self,
        store: Optional[ConfigurationStore] = None,
        result_cache: Optional[ClassificationCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store or ConfigurationStore()
        self.settings = settings or get_settings()
        self._result_cache = result_cache
        self._engines: Dict[Tuple[Optional[str], Optional[str]], Tuple[str, ClassificationEngine]] = {}
        self._lock = threading.Lock()

    @property
    def result_cache(self) -> Optional[ClassificationCache]:
        return self._result_cache

    def engine_for(
        self, repository_context: ContextArg = None, profile_id: Optional[str] = None
    ) -> ClassificationEngine:
        """Engine for the current effective configuration of a repository and profile."""
        context = _as_context(repository_context)
        config = self.store.get_effective_config(context, profile_id)
        digest = config.digest()
        key = (context.slug if context else None, profile_id)

        with self._lock:
            current = self._engines.get(key)
            if current is not None and current[0] == digest:
                return current[1]

            if self._result_cache is None:
                caching = config.performance.caching if config.performance else None
                self._result_cache = build_result_cache(caching, self.settings)

            engine = ClassificationEngine(
                config, result_cache=self._result_cache, profile_id=profile_id
            )
            self._engines[key] = (digest, engine)

        logger.info(
            "engine_built",
            repository=key[0],
            profile_id=profile_id,
            config_version=config.version,
            config_digest=digest,
        )
        return engine

    def classify(
        self,
        issue: IssueLike,
        repository_context: ContextArg = None,
        profile_id: Optional[str] = None,
    ) -> EnhancedIssueClassification:
        context = _as_context(repository_context)
        return self.engine_for(context, profile_id).classify_issue(issue, context)

    def classify_batch(
        self,
        issues: Iterable[IssueLike],
        repository_context: ContextArg = None,
        profile_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        batch_size: Optional[int] = None,
        parallelism: Optional[int] = None,
    ) -> BatchClassificationResult:
        context = _as_context(repository_context)
        processor = BatchProcessor(
            self.engine_for(context, profile_id), batch_size=batch_size, parallelism=parallelism
        )
        return processor.classify_batch(issues, context, cancel_event=cancel_event)

    def top_tasks(
        self,
        issues: Iterable[IssueLike],
        limit: int = 3,
        repository_context: ContextArg = None,
        profile_id: Optional[str] = None,
    ) -> TopTasksResult:
        context = _as_context(repository_context)
        return self.engine_for(context, profile_id).get_top_tasks(issues, limit, context)

    def invalidate(self) -> None:
        """Drop cached configurations, engines and results."""
        self.store.clear_cache()
        with self._lock:
            self._engines.clear()
            result_cache = self._result_cache
        if result_cache is not None:
            result_cache.clear()
        logger.info("classification_caches_invalidated")

    def cache_stats(self) -> Dict[str, Any]:
        return {
            "config": self.store.get_cache_stats(),
            "results": self._result_cache.stats() if self._result_cache else None,
        }
