"""Runtime wiring for the HouseHub cache store."""

from __future__ import annotations

import logging

from househub.cache.accessor import TypedCache
from househub.cache.redis import RedisCacheStore, get_redis
from househub.cache.store import CacheStore, InMemoryCacheStore
from househub.config import settings

logger = logging.getLogger(__name__)

_cache_store: CacheStore | None = None


async def create_cache_store() -> CacheStore:
    """Create a cache store based on configuration."""
    backend = settings.cache_backend.lower()

    if backend in {"memory", "inmemory", "in_memory"}:
        return InMemoryCacheStore()

    if backend == "redis":
        return RedisCacheStore(await get_redis())

    raise ValueError("Unsupported cache_backend. Supported values: memory, redis.")


async def get_cache_store() -> CacheStore:
    """Get the singleton cache store."""
    global _cache_store
    if _cache_store is None:
        _cache_store = await create_cache_store()
        logger.info("Cache store ready (%s)", type(_cache_store).__name__)
    return _cache_store


async def get_typed_cache() -> TypedCache:
    """Wrap the singleton store with the configured timeout and TTL."""
    return TypedCache(
        await get_cache_store(),
        timeout=settings.cache_timeout_seconds,
        default_ttl=settings.cache_ttl_seconds,
    )


async def close_cache_store() -> None:
    global _cache_store
    if _cache_store is None:
        return
    await _cache_store.close()
    _cache_store = None
