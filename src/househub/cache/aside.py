"""Cache-aside orchestration shared by every domain service.

Reads:
    cache -> (miss) system of record -> best-effort write-back

Writes:
    resolve relationships (caller) -> invalidate -> write -> publish -> repopulate

Only the system of record can fail an operation. Cache and publish
failures are logged, counted and absorbed.

Concurrent invalidation and repopulation can interleave so that a value
read before a write is written back after its invalidation. The window is
bounded by the entry TTL; nothing here serializes the two.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, TypeVar

from househub.cache.accessor import Hit, TypedCache
from househub.cache.invalidation import InvalidationSet
from househub.errors import EventPublishError
from househub.events.publisher import Publisher
from househub.events.schemas import DomainEvent
from househub.observability.metrics import (
    record_event_failed,
    record_event_published,
    record_invalidations,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Default TTL (1 hour)
DEFAULT_TTL = 3600


class CacheAside:
    """Read-through and write-invalidate around a system of record."""

    def __init__(
        self,
        cache: TypedCache,
        publisher: Publisher,
        ttl: int | None = DEFAULT_TTL,
        publish_timeout: float | None = None,
    ):
        self.cache = cache
        self.publisher = publisher
        self.ttl = ttl
        self.publish_timeout = publish_timeout

    async def read_through(
        self,
        key: str,
        type_: Any,
        loader: Callable[[], Awaitable[T]],
        ttl: int | None = None,
    ) -> T:
        """Return the cached value for key, loading and caching it on a miss.

        Args:
            key: Cache key for the value
            type_: Type the cached JSON is parsed into
            loader: Reads the value from the system of record
            ttl: Entry TTL in seconds (defaults to the configured TTL)

        Returns:
            The value, from cache or from the loader.

        Raises:
            SystemOfRecordError: If the loader fails
        """
        result = await self.cache.get(key, type_)
        if isinstance(result, Hit):
            return result.value  # type: ignore[no-any-return]

        value = await loader()
        await self.cache.set(key, value, ttl if ttl is not None else self.ttl, type_=type_)
        return value

    async def invalidate(self, keys: Iterable[str]) -> int:
        """Delete keys, best effort. Returns how many deletes succeeded."""
        keys = tuple(keys)
        deleted = await self.cache.delete(*keys)
        record_invalidations(deleted)
        if deleted < len(keys):
            logger.warning(f"Invalidated {deleted} of {len(keys)} keys")
        return deleted

    async def publish(self, event: DomainEvent) -> bool:
        """Publish event, best effort. Returns False if it was dropped."""
        module, action = event.module.value, event.action.value
        try:
            await asyncio.wait_for(self.publisher.publish(event), self.publish_timeout)
        except (EventPublishError, OSError, asyncio.TimeoutError) as e:
            logger.warning(
                f"Dropped event {module}/{action}: {e!r}",
                extra={"event_module": module, "event_action": action},
            )
            record_event_failed(module, action)
            return False
        record_event_published(module, action)
        return True

    async def repopulate(self, values: Mapping[str, Any], ttl: int | None = None) -> None:
        """Write fresh values back, best effort."""
        ttl = ttl if ttl is not None else self.ttl
        await asyncio.gather(*(self.cache.set(key, value, ttl) for key, value in values.items()))

    async def mutate(
        self,
        *,
        invalidate: InvalidationSet | Iterable[str],
        write: Callable[[], Awaitable[R]],
        event: Callable[[R], DomainEvent] | None = None,
        repopulate: Callable[[R], Mapping[str, Any]] | None = None,
    ) -> R:
        """Run one mutation through invalidate, write, publish, repopulate.

        Relationships needed to derive ``invalidate`` must be resolved by
        the caller before calling this.

        Args:
            invalidate: Keys to delete before the write
            write: The authoritative write; its result is returned
            event: Builds the event from the write's result
            repopulate: Builds fresh key/value pairs from the write's result

        Returns:
            The write's result.

        Raises:
            SystemOfRecordError: If the write fails; no event is published
        """
        await self.invalidate(invalidate)

        result = await write()

        if event is not None:
            await self.publish(event(result))

        if repopulate is not None:
            await self.repopulate(repopulate(result))

        return result
