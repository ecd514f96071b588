"""Tests for the typed cache accessor."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest

from househub.cache.accessor import Hit, Miss, MissReason, TypedCache
from househub.core.models import Task, TaskAssignment

if TYPE_CHECKING:
    from tests.conftest import ControllableStore


def make_task(task_id: int = 10, home_id: int = 7) -> Task:
    return Task(
        id=task_id,
        home_id=home_id,
        name="Dishes",
        description="After dinner",
        schedule_type="daily",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestGet:
    """Tests for TypedCache.get."""

    @pytest.mark.asyncio
    async def test_absent_key_is_miss(self, cache: TypedCache) -> None:
        """Absent key returns Miss(ABSENT)."""
        assert await cache.get("househub:task:1", Task) == Miss(MissReason.ABSENT)

    @pytest.mark.asyncio
    async def test_set_then_get_hits(self, cache: TypedCache) -> None:
        """A stored value comes back equal."""
        task = make_task()
        assert await cache.set("househub:task:10", task)

        result = await cache.get("househub:task:10", Task)

        assert isinstance(result, Hit)
        assert result.value == task

    @pytest.mark.asyncio
    async def test_list_value(self, cache: TypedCache) -> None:
        """Generic container types round-trip through the adapter."""
        tasks = [make_task(1), make_task(2)]
        await cache.set("househub:home:7:tasks", tasks, type_=list[Task])

        result = await cache.get("househub:home:7:tasks", list[Task])

        assert isinstance(result, Hit)
        assert result.value == tasks

    @pytest.mark.asyncio
    async def test_cached_none_is_hit(self, cache: TypedCache) -> None:
        """A cached "nothing" is a hit, not a miss."""
        await cache.set("househub:user:1:closest_assignment", None)

        result = await cache.get("househub:user:1:closest_assignment", TaskAssignment | None)

        assert result == Hit(None)

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_miss(
        self, cache: TypedCache, store: ControllableStore
    ) -> None:
        """Bytes that don't parse into the type are treated as a miss."""
        await store.inner.set("househub:task:10", b"{not json")
        await store.inner.set("househub:task:11", b'{"id": "eleven"}')

        assert await cache.get("househub:task:10", Task) == Miss(MissReason.CORRUPT)
        assert await cache.get("househub:task:11", Task) == Miss(MissReason.CORRUPT)

    @pytest.mark.asyncio
    async def test_store_error_is_miss(self, cache: TypedCache, store: ControllableStore) -> None:
        """Store failures never raise."""
        await cache.set("househub:task:10", make_task())
        store.fail.add("get")

        assert await cache.get("househub:task:10", Task) == Miss(MissReason.UNAVAILABLE)

    @pytest.mark.asyncio
    async def test_store_timeout_is_miss(self, cache: TypedCache, store: ControllableStore) -> None:
        """A hanging store is abandoned after the timeout."""
        store.hang.add("get")

        result = await asyncio.wait_for(cache.get("househub:task:10", Task), timeout=1.0)

        assert result == Miss(MissReason.UNAVAILABLE)


class TestSetAndDelete:
    """Tests for TypedCache.set and TypedCache.delete."""

    @pytest.mark.asyncio
    async def test_set_swallows_store_error(
        self, cache: TypedCache, store: ControllableStore
    ) -> None:
        """set reports failure instead of raising."""
        store.fail.add("set")

        assert await cache.set("househub:task:10", make_task()) is False

    @pytest.mark.asyncio
    async def test_set_swallows_timeout(self, cache: TypedCache, store: ControllableStore) -> None:
        """A hanging set is abandoned."""
        store.hang.add("set")

        assert await cache.set("househub:task:10", make_task()) is False

    @pytest.mark.asyncio
    async def test_set_unserializable_value(self, cache: TypedCache) -> None:
        """Values that cannot be serialized are dropped."""
        assert await cache.set("househub:task:10", object()) is False

    @pytest.mark.asyncio
    async def test_repeated_set_is_idempotent(self, cache: TypedCache) -> None:
        """Setting the same value twice leaves the same state."""
        task = make_task()
        await cache.set("househub:task:10", task)
        await cache.set("househub:task:10", task)

        assert await cache.get("househub:task:10", Task) == Hit(task)

    @pytest.mark.asyncio
    async def test_set_uses_default_ttl(self, store: ControllableStore) -> None:
        """Entries expire after the default TTL."""
        now = [0.0]
        store.inner = type(store.inner)(clock=lambda: now[0])
        cache = TypedCache(store, default_ttl=60)

        await cache.set("househub:task:10", make_task())
        now[0] = 61.0

        assert await cache.get("househub:task:10", Task) == Miss(MissReason.ABSENT)

    @pytest.mark.asyncio
    async def test_delete_absent_key_is_noop(self, cache: TypedCache) -> None:
        """Deleting an absent key succeeds."""
        assert await cache.delete("househub:task:404") == 1

    @pytest.mark.asyncio
    async def test_delete_removes_keys(self, cache: TypedCache) -> None:
        """Deleted keys miss afterwards."""
        await cache.set("househub:task:1", make_task(1))
        await cache.set("househub:task:2", make_task(2))

        assert await cache.delete("househub:task:1", "househub:task:2") == 2
        assert await cache.get("househub:task:1", Task) == Miss(MissReason.ABSENT)
        assert await cache.get("househub:task:2", Task) == Miss(MissReason.ABSENT)

    @pytest.mark.asyncio
    async def test_delete_swallows_store_error(
        self, cache: TypedCache, store: ControllableStore
    ) -> None:
        """Failed deletes are counted, not raised."""
        store.fail.add("delete")

        assert await cache.delete("househub:task:1", "househub:task:2") == 0
