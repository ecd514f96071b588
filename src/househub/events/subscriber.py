"""Redis Pub/Sub listener for the updates channel.

Feeds every envelope published by any HouseHub instance to local
handlers, typically the WebSocket gateway.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from househub.events.publisher import DEFAULT_CHANNEL, UpdateHandler

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)


class RedisUpdatesSubscriber:
    """Subscribes to the updates channel and dispatches raw payloads.

    Start during application startup and stop during shutdown.
    """

    def __init__(self, client: Redis, channel: str = DEFAULT_CHANNEL):
        self.client = client
        self.channel = channel
        self._handlers: list[UpdateHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None

    def subscribe(self, handler: UpdateHandler) -> None:
        """Register a handler for incoming envelopes."""
        self._handlers.append(handler)
        handler_name = getattr(handler, "__name__", handler.__class__.__name__)
        logger.info(f"Registered updates handler: {handler_name}")

    async def start(self) -> None:
        """Start listening on the channel."""
        if self._running:
            return

        self._pubsub = self.client.pubsub()
        await self._pubsub.subscribe(self.channel)

        self._running = True
        self._task = asyncio.create_task(self._listen_loop())
        logger.info(f"Listening for updates on channel {self.channel}")

    async def stop(self) -> None:
        """Stop listening."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None

        logger.info("Stopped updates listener")

    async def _listen_loop(self) -> None:
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self._dispatch(message["data"])

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in updates listener: {e}")
                await asyncio.sleep(1)

    async def _dispatch(self, data: bytes) -> None:
        for handler in self._handlers:
            try:
                await handler(data)
            except Exception as e:
                logger.error(f"Updates handler failed: {e}")
