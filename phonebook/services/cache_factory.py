import logging
import time
from typing import Optional

from .cache import Cache
from .cache_backends import InProcessLRUCache, NoCache, RedisCache
from phonebook.config import (
    CACHE_BACKEND,
    CACHE_CAPACITY,
    REDIS_URL,
    REDIS_SOCKET_TIMEOUT_SECONDS,
    STARTUP_RETRY_ATTEMPTS,
    STARTUP_RETRY_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

_cache_singleton: Optional[Cache] = None


def build_cache(backend: str) -> Cache:
    if backend == "redis":
        return RedisCache(REDIS_URL, socket_timeout=REDIS_SOCKET_TIMEOUT_SECONDS)
    if backend == "none":
        return NoCache()
    if backend != "memory":
        logger.warning("Unknown CACHE_BACKEND %r; using in-process memory cache", backend)
    return InProcessLRUCache(capacity=CACHE_CAPACITY)


def get_cache() -> Cache:
    """
    Returns the process-wide cache instance based on configuration:
      - "none"   -> no-op backend (always misses)
      - "memory" -> in-process LRU (single instance only)
      - "redis"  -> shared Redis cache

    Also used as a FastAPI dependency, so tests can swap it through
    app.dependency_overrides[get_cache].
    """
    global _cache_singleton
    if _cache_singleton is None:
        _cache_singleton = build_cache(CACHE_BACKEND)
    return _cache_singleton


def wait_for_cache(
    cache: Cache,
    attempts: int = STARTUP_RETRY_ATTEMPTS,
    delay_seconds: float = STARTUP_RETRY_DELAY_SECONDS,
) -> bool:
    """
    Ping the cache until it answers. Unlike the database this is not fatal:
    the service can run on the Store alone, so the result is only reported.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        if cache.ping():
            logger.info("Cache is ready (attempt %d/%d)", attempt, attempts)
            return True
        if attempt < attempts:
            logger.warning("Waiting for cache to be ready... attempt %d/%d", attempt, attempts)
            time.sleep(delay_seconds)
    logger.warning("Cache not reachable after %d attempts; serving from the database only", attempts)
    return False
