"""
Caching Layer.

Classification results are cached under a fingerprint of the issue content,
repository and configuration, in memory or in Redis:

Usage:
    from triage.cache import CacheKeys, ClassificationCache, MemoryResultStore

    cache = ClassificationCache(MemoryResultStore(max_size=500, ttl=600))
    key = CacheKeys.fingerprint(issue, config)
    result = cache.get(key)
"""

from triage.cache.cache_keys import CacheKeys
from triage.cache.memory import MemoryResultStore
from triage.cache.redis_client import RedisCache, RedisResultStore, get_redis_cache
from triage.cache.result_cache import ClassificationCache, ResultStore

__all__ = [
    "CacheKeys",
    "ClassificationCache",
    "MemoryResultStore",
    "RedisCache",
    "RedisResultStore",
    "ResultStore",
    "get_redis_cache",
]
