"""Runtime wiring for the HouseHub event publisher."""

from __future__ import annotations

import logging

from househub.cache.redis import get_redis
from househub.config import settings
from househub.events.publisher import InMemoryPublisher, Publisher, RedisPublisher

logger = logging.getLogger(__name__)

_publisher: Publisher | None = None


async def create_publisher() -> Publisher:
    """Create a publisher based on configuration."""
    backend = settings.events_backend.lower()

    if backend in {"memory", "inmemory", "in_memory"}:
        return InMemoryPublisher(channel=settings.events_channel)

    if backend == "redis":
        return RedisPublisher(await get_redis(), channel=settings.events_channel)

    raise ValueError("Unsupported events_backend. Supported values: memory, redis.")


async def get_publisher() -> Publisher:
    """Get the singleton publisher instance."""
    global _publisher
    if _publisher is None:
        _publisher = await create_publisher()
        logger.info("Event publisher ready (%s)", type(_publisher).__name__)
    return _publisher


async def close_publisher() -> None:
    global _publisher
    if _publisher is None:
        return
    await _publisher.close()
    _publisher = None
