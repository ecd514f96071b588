"""Redis cache store for HouseHub.

Uses the redis-py async client with a shared connection pool.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, cast

import redis.asyncio as redis
from redis.exceptions import RedisError

from househub.cache.store import CacheStore
from househub.config import settings
from househub.errors import CacheUnavailableError

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            decode_responses=False,  # We're storing bytes
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
            retry_on_timeout=True,
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class RedisCacheStore(CacheStore):
    """CacheStore backed by Redis GET / SET EX / DEL."""

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> bytes | None:
        try:
            return cast(bytes | None, await self.client.get(key))
        except RedisError as e:
            raise CacheUnavailableError(f"GET {key} failed: {e}") from e

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        try:
            if ttl is None:
                await self.client.set(key, value)
            else:
                await self.client.setex(key, ttl, value)
        except RedisError as e:
            raise CacheUnavailableError(f"SET {key} failed: {e}") from e

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self.client.delete(*keys)
        except RedisError as e:
            raise CacheUnavailableError(f"DEL {' '.join(keys)} failed: {e}") from e

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except RedisError:
            return False
