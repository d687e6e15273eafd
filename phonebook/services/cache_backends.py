import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from .cache import Cache, CacheError
from .lru_cache import LRUCacheImpl

logger = logging.getLogger(__name__)


class InProcessLRUCache(Cache):
    """In-process LRU cache backend."""
    def __init__(self, capacity: int):
        self._lru = LRUCacheImpl(capacity=capacity)

    def get(self, key: str) -> Optional[str]:
        return self._lru.get(key)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self._lru.set(key, value, ttl_seconds)

    def delete(self, key: str) -> None:
        self._lru.delete(key)

    def delete_prefix(self, prefix: str) -> int:
        return self._lru.delete_prefix(prefix)


class RedisCache(Cache):
    """
    Shared Redis backend (one instance, no sharding).
    Any RedisError is re-raised as CacheError so callers never depend on redis-py types.
    """
    def __init__(self, url: str, socket_timeout: Optional[float] = None, client: Optional[redis.Redis] = None):
        self._url = url
        self._client = client or redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client.get(key)
        except RedisError as e:
            raise CacheError(f"redis GET {key} failed: {e}") from e

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        try:
            self._client.set(key, value, ex=ttl_seconds or None)
        except RedisError as e:
            raise CacheError(f"redis SET {key} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as e:
            raise CacheError(f"redis DEL {key} failed: {e}") from e

    def delete_prefix(self, prefix: str) -> int:
        try:
            keys = list(self._client.scan_iter(match=f"{prefix}*", count=500))
            if not keys:
                return 0
            return int(self._client.delete(*keys))
        except RedisError as e:
            raise CacheError(f"redis delete of {prefix}* failed: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError as e:
            logger.debug("redis ping failed: %s", e)
            return False


class NoCache(Cache):
    """No-op cache used when caching is disabled; every read is a miss."""
    def get(self, key: str): return None
    def set(self, key: str, value: str, ttl_seconds: int | None = None): pass
    def delete(self, key: str): pass
    def delete_prefix(self, prefix: str) -> int: return 0
