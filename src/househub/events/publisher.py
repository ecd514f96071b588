"""Event publishers.

A publisher hands an encoded DomainEvent to the shared updates channel.
There is no acknowledgement and no delivery guarantee; subscribers that
are not connected at publish time miss the event.

Publishers raise EventPublishError on failure. The cache-aside layer
absorbs it so business operations never fail because of a publish.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, cast

from redis.exceptions import RedisError

from househub.errors import EventPublishError
from househub.events.schemas import DomainEvent

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL = "updates"

# Subscribers receive the raw encoded envelope
UpdateHandler = Callable[[bytes], Awaitable[None]]


class Publisher(ABC):
    """Broadcasts domain events on a named channel."""

    def __init__(self, channel: str = DEFAULT_CHANNEL):
        self.channel = channel

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """Publish one event.

        Raises:
            EventPublishError: If the event could not be handed to the channel
        """

    def encode(self, event: DomainEvent) -> bytes:
        """Encode event for the wire.

        Raises:
            EventPublishError: If the payload is not JSON serializable
        """
        try:
            return event.to_bytes()
        except (ValueError, TypeError) as e:
            raise EventPublishError(
                f"Cannot encode {event.module.value}/{event.action.value}: {e}"
            ) from e

    async def close(self) -> None:
        return None


class RedisPublisher(Publisher):
    """Publishes events with Redis PUBLISH."""

    def __init__(self, client: Redis, channel: str = DEFAULT_CHANNEL):
        super().__init__(channel)
        self.client = client

    async def publish(self, event: DomainEvent) -> None:
        payload = self.encode(event)
        try:
            count = cast(int, await self.client.publish(self.channel, payload))
        except RedisError as e:
            raise EventPublishError(f"PUBLISH {self.channel} failed: {e}") from e
        logger.debug(
            f"Published {event.module.value}/{event.action.value} "
            f"to {count} subscribers on {self.channel}"
        )


class _Delivery:
    """FIFO delivery of envelopes to one local handler."""

    def __init__(self, handler: UpdateHandler, max_size: int):
        self.handler = handler
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=max_size)
        self._task: asyncio.Task[None] | None = None

    def offer(self, payload: bytes) -> bool:
        """Queue payload without waiting. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._process_loop())
        return True

    async def _process_loop(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.handler(payload)
            except Exception:
                # Log error but continue delivering
                logger.exception("Error in update handler")
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        await self._queue.join()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


class InMemoryPublisher(Publisher):
    """Process-local publisher.

    Records every event and forwards the encoded envelope to local
    subscribers. Used in tests and single-process deployments.

    Each subscriber is fed from its own queue by its own task, so
    publishing never waits for a subscriber and a slow subscriber does
    not delay the others. Envelopes reach each subscriber in publish
    order. When a subscriber's queue is full the envelope is dropped
    for that subscriber only.
    """

    def __init__(self, channel: str = DEFAULT_CHANNEL, max_pending: int = 10000):
        super().__init__(channel)
        self.events: list[DomainEvent] = []
        self.max_pending = max_pending
        self._deliveries: list[_Delivery] = []

    def subscribe(self, handler: UpdateHandler) -> None:
        """Register a handler for published envelopes."""
        self._deliveries.append(_Delivery(handler, self.max_pending))

    def unsubscribe(self, handler: UpdateHandler) -> None:
        for delivery in [d for d in self._deliveries if d.handler == handler]:
            delivery.cancel()
            self._deliveries.remove(delivery)

    async def publish(self, event: DomainEvent) -> None:
        payload = self.encode(event)
        self.events.append(event)
        for delivery in self._deliveries:
            if not delivery.offer(payload):
                logger.warning(
                    f"Update handler queue full, dropped "
                    f"{event.module.value}/{event.action.value}"
                )

    async def drain(self) -> None:
        """Wait until every queued envelope has been handled."""
        await asyncio.gather(*(d.drain() for d in self._deliveries))

    async def close(self) -> None:
        await asyncio.gather(*(d.stop() for d in self._deliveries))

    def clear(self) -> None:
        self.events.clear()
