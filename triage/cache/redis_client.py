"""
Redis client with connection pooling, and a result store built on it.

RedisCache degrades gracefully: when Redis cannot be reached every read is a
miss and every write is a no-op, so classification always proceeds.
"""

import json
import math
from functools import lru_cache
from typing import Any, Dict, Optional

import redis
from pydantic import ValidationError
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from triage.config import Settings, get_settings
from triage.logging import get_logger
from triage.models import EnhancedIssueClassification

from .cache_keys import CacheKeys

logger = get_logger("cache")


class RedisCache:
    """
    Redis cache client with connection pooling.

    Usage:
        cache = RedisCache(get_settings())
        cache.set_json("result:42:...", {"score": 87.5}, ttl=3600)
        data = cache.get_json("result:42:...")
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._pool: Optional[redis.ConnectionPool] = None
        self._initialized = False
        self._available = False

    def initialize(self, force: bool = False) -> bool:
        """
        Initialize Redis connection pool.

        Args:
            force: Force re-initialization even if already initialized

        Returns:
            True if Redis is available and connected, False otherwise
        """
        if self._initialized and not force:
            return self._available

        try:
            self._pool = redis.ConnectionPool(
                host=self.settings.redis_host,
                port=self.settings.redis_port,
                db=self.settings.redis_db,
                password=self.settings.redis_password,
                max_connections=50,
                socket_timeout=5,
                socket_connect_timeout=5,
                decode_responses=False,
            )

            # Test connection
            client = redis.Redis(connection_pool=self._pool)
            client.ping()

            self._available = True
            logger.info(
                "redis_connected", host=self.settings.redis_host, port=self.settings.redis_port
            )
        except (ConnectionError, TimeoutError) as e:
            logger.warning("redis_connection_failed", error=str(e))
            self._available = False
        except RedisError as e:
            logger.warning("redis_init_error", error=str(e))
            self._available = False

        self._initialized = True
        return self._available

    @property
    def client(self) -> Optional[redis.Redis]:
        """Get Redis client from pool."""
        if not self.is_available or self._pool is None:
            return None
        return redis.Redis(connection_pool=self._pool)

    @property
    def is_available(self) -> bool:
        if not self._initialized:
            self.initialize()
        return self._available

    # =========================================================================
    # JSON Operations
    # =========================================================================

    def get_json(self, key: str) -> Optional[dict]:
        """Get JSON data from cache, or None if not found/unavailable."""
        client = self.client
        if client is None:
            return None

        try:
            data = client.get(key)
            if data is None:
                return None
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            parsed = json.loads(data)
            return parsed if isinstance(parsed, dict) else None
        except (json.JSONDecodeError, UnicodeDecodeError, RedisError) as e:
            logger.debug("cache_get_error", key=key, error=str(e))
            return None

    def set_json(self, key: str, value: dict, ttl: int = CacheKeys.TTL_RESULT) -> bool:
        """Store JSON data in cache. Returns True if cached successfully."""
        client = self.client
        if client is None:
            return False

        try:
            serialized = json.dumps(value).encode("utf-8")
            if ttl > 0:
                client.setex(key, ttl, serialized)
            else:
                client.set(key, serialized)
            return True
        except (TypeError, RedisError) as e:
            logger.debug("cache_set_error", key=key, error=str(e))
            return False

    # =========================================================================
    # Key Operations
    # =========================================================================

    def delete(self, key: str) -> bool:
        client = self.client
        if client is None:
            return False

        try:
            client.delete(key)
            return True
        except RedisError:
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Redis pattern (e.g., "triage:result:*")

        Returns:
            Number of keys deleted
        """
        client = self.client
        if client is None:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if not keys:
                return 0
            return int(client.delete(*keys))
        except RedisError:
            return 0

    def count_pattern(self, pattern: str) -> int:
        client = self.client
        if client is None:
            return 0

        try:
            return sum(1 for _ in client.scan_iter(match=pattern))
        except RedisError:
            return 0

    def health_check(self) -> Dict[str, Any]:
        status: Dict[str, Any] = {
            "available": self._available,
            "initialized": self._initialized,
        }

        client = self.client
        if client is None:
            status["status"] = "unavailable"
            return status

        try:
            memory_info = client.info("memory")
            status["memory_used"] = memory_info.get("used_memory_human", "unknown")
            status["status"] = "healthy"
        except RedisError:
            status["status"] = "degraded"
        return status


@lru_cache(maxsize=1)
def get_redis_cache() -> RedisCache:
    """Process-wide Redis client built from settings."""
    return RedisCache(get_settings())


class RedisResultStore:
    """Classification results stored as JSON documents; expiry is left to Redis."""

    backend = "redis"

    def __init__(self, cache: RedisCache, prefix: str = "triage", ttl: float = CacheKeys.TTL_RESULT):
        self.cache = cache
        self.prefix = prefix
        # Redis expiry is whole seconds; round up so short TTLs still expire
        self.ttl = math.ceil(ttl)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[EnhancedIssueClassification]:
        data = self.cache.get_json(self._key(key))
        if data is None:
            return None
        try:
            return EnhancedIssueClassification.model_validate(data)
        except ValidationError as e:
            logger.warning("cached_result_invalid", key=key, error=str(e))
            self.cache.delete(self._key(key))
            return None

    def set(self, key: str, value: EnhancedIssueClassification) -> None:
        self.cache.set_json(self._key(key), value.to_document(), ttl=self.ttl)

    def delete(self, key: str) -> None:
        self.cache.delete(self._key(key))

    def clear(self) -> None:
        deleted = self.cache.delete_pattern(self._key(CacheKeys.result_pattern()))
        logger.info("result_cache_cleared", backend=self.backend, deleted=deleted)

    def __len__(self) -> int:
        return self.cache.count_pattern(self._key(CacheKeys.result_pattern()))

    def info(self) -> Dict[str, Any]:
        return {"backend": self.backend, "size": len(self), **self.cache.health_check()}
