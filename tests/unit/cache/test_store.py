"""Tests for cache store backends."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from househub.cache.redis import RedisCacheStore
from househub.cache.store import InMemoryCacheStore
from househub.errors import CacheUnavailableError


class TestInMemoryCacheStore:
    """Tests for InMemoryCacheStore."""

    @pytest.mark.asyncio
    async def test_get_set_delete(self) -> None:
        store = InMemoryCacheStore()

        await store.set("k", b"v")
        assert await store.get("k") == b"v"

        await store.delete("k", "missing")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self) -> None:
        """Entries vanish once their TTL has elapsed."""
        now = [100.0]
        store = InMemoryCacheStore(clock=lambda: now[0])

        await store.set("k", b"v", ttl=10)
        now[0] = 109.9
        assert await store.get("k") == b"v"

        now[0] = 110.0
        assert await store.get("k") is None
        assert "k" not in store

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self) -> None:
        now = [0.0]
        store = InMemoryCacheStore(clock=lambda: now[0])

        await store.set("k", b"v")
        now[0] = 10**9

        assert await store.get("k") == b"v"


@pytest.fixture
def redis_client() -> AsyncMock:
    """Create a mock Redis client."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


class TestRedisCacheStore:
    """Tests for RedisCacheStore."""

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_setex(self, redis_client: AsyncMock) -> None:
        store = RedisCacheStore(redis_client)

        await store.set("househub:task:1", b"{}", ttl=3600)

        redis_client.setex.assert_awaited_once_with("househub:task:1", 3600, b"{}")
        redis_client.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_without_ttl(self, redis_client: AsyncMock) -> None:
        store = RedisCacheStore(redis_client)

        await store.set("househub:task:1", b"{}")

        redis_client.set.assert_awaited_once_with("househub:task:1", b"{}")

    @pytest.mark.asyncio
    async def test_get_returns_bytes(self, redis_client: AsyncMock) -> None:
        redis_client.get.return_value = b'{"id": 1}'
        store = RedisCacheStore(redis_client)

        assert await store.get("househub:task:1") == b'{"id": 1}'

    @pytest.mark.asyncio
    async def test_delete_without_keys_skips_redis(self, redis_client: AsyncMock) -> None:
        store = RedisCacheStore(redis_client)

        await store.delete()

        redis_client.delete.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["get", "set", "delete"])
    async def test_redis_errors_become_cache_unavailable(
        self, redis_client: AsyncMock, operation: str
    ) -> None:
        """Driver errors are translated so the accessor can absorb them."""
        for method in ("get", "setex", "delete"):
            getattr(redis_client, method).side_effect = RedisConnectionError("down")
        store = RedisCacheStore(redis_client)

        with pytest.raises(CacheUnavailableError):
            if operation == "get":
                await store.get("k")
            elif operation == "set":
                await store.set("k", b"v", ttl=1)
            else:
                await store.delete("k")

    @pytest.mark.asyncio
    async def test_health_check(self, redis_client: AsyncMock) -> None:
        store = RedisCacheStore(redis_client)
        assert await store.health_check() is True

        redis_client.ping.side_effect = RedisConnectionError("down")
        assert await store.health_check() is False
