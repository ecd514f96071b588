"""Global pytest configuration and fixtures.

Services run against a real SQLite database (aiosqlite) and an in-memory
cache store, so every test sees the full read-through and invalidate,
write, publish, repopulate sequence.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from househub.cache.accessor import TypedCache
from househub.cache.aside import CacheAside
from househub.cache.store import CacheStore, InMemoryCacheStore
from househub.errors import CacheUnavailableError
from househub.events.publisher import InMemoryPublisher
from househub.persistence.db import create_engine, create_session_factory, create_tables
from househub.services import Services, build_services


class ControllableStore(CacheStore):
    """In-memory store whose operations can be made to fail or hang.

    ``fail`` and ``hang`` hold operation names ("get", "set", "delete").
    Every call is recorded in ``calls`` as (operation, key).
    """

    def __init__(self) -> None:
        self.inner = InMemoryCacheStore()
        self.fail: set[str] = set()
        self.hang: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    async def _gate(self, operation: str, key: str) -> None:
        self.calls.append((operation, key))
        if operation in self.hang:
            await asyncio.sleep(30)
        if operation in self.fail:
            raise CacheUnavailableError(f"{operation} {key} refused")

    async def get(self, key: str) -> bytes | None:
        await self._gate("get", key)
        return await self.inner.get(key)

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        await self._gate("set", key)
        await self.inner.set(key, value, ttl)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            await self._gate("delete", key)
        await self.inner.delete(*keys)

    def keys_for(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]


@pytest.fixture
def store() -> ControllableStore:
    return ControllableStore()


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher()


@pytest.fixture
def cache(store: ControllableStore) -> TypedCache:
    return TypedCache(store, timeout=0.05, default_ttl=3600)


@pytest.fixture
def aside(cache: TypedCache, publisher: InMemoryPublisher) -> CacheAside:
    return CacheAside(cache, publisher, ttl=3600, publish_timeout=0.05)


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'househub.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def services(
    session_factory: async_sessionmaker[AsyncSession], aside: CacheAside
) -> Services:
    return build_services(session_factory, aside)
