"""Tests for event publishers."""

import asyncio
from unittest.mock import AsyncMock

import orjson
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from househub.errors import EventPublishError
from househub.events.publisher import InMemoryPublisher, RedisPublisher
from househub.events.schemas import Action, DomainEvent, Module


@pytest.fixture
def event() -> DomainEvent:
    return DomainEvent(Module.TASK, Action.CREATED, {"id": 10})


@pytest.fixture
def unencodable() -> DomainEvent:
    return DomainEvent(Module.TASK, Action.UPDATED, {"x": object()})


class TestInMemoryPublisher:
    """Test in-memory publisher."""

    async def test_records_events(self, event: DomainEvent) -> None:
        publisher = InMemoryPublisher()

        await publisher.publish(event)

        assert publisher.events == [event]
        publisher.clear()
        assert publisher.events == []

    async def test_forwards_encoded_envelope(self, event: DomainEvent) -> None:
        publisher = InMemoryPublisher()
        received: list[bytes] = []

        async def handler(payload: bytes) -> None:
            received.append(payload)

        publisher.subscribe(handler)
        await publisher.publish(event)
        await publisher.drain()
        publisher.unsubscribe(handler)
        await publisher.publish(event)
        await publisher.drain()

        assert len(received) == 1
        assert orjson.loads(received[0])["module"] == "TASK"

    async def test_handler_error_does_not_stop_others(self, event: DomainEvent) -> None:
        """A failing subscriber is logged and skipped."""
        publisher = InMemoryPublisher()
        received: list[bytes] = []

        async def broken(payload: bytes) -> None:
            raise RuntimeError("boom")

        async def handler(payload: bytes) -> None:
            received.append(payload)

        publisher.subscribe(broken)
        publisher.subscribe(handler)
        await publisher.publish(event)
        await publisher.publish(event)
        await publisher.drain()

        assert len(received) == 2
        await publisher.close()

    async def test_slow_handler_does_not_block_publish(self, event: DomainEvent) -> None:
        """Publishing returns at once and other subscribers are served."""
        publisher = InMemoryPublisher()
        release = asyncio.Event()
        fast_received = asyncio.Event()
        slow_received: list[bytes] = []

        async def slow(payload: bytes) -> None:
            await release.wait()
            slow_received.append(payload)

        async def fast(payload: bytes) -> None:
            fast_received.set()

        publisher.subscribe(slow)
        publisher.subscribe(fast)

        await asyncio.wait_for(publisher.publish(event), timeout=0.1)
        await asyncio.wait_for(fast_received.wait(), timeout=1.0)
        assert slow_received == []

        release.set()
        await asyncio.wait_for(publisher.drain(), timeout=1.0)
        assert len(slow_received) == 1
        await publisher.close()

    async def test_delivery_keeps_publish_order(self) -> None:
        publisher = InMemoryPublisher()
        received: list[int] = []

        async def handler(payload: bytes) -> None:
            await asyncio.sleep(0)
            received.append(orjson.loads(payload)["data"]["id"])

        publisher.subscribe(handler)
        for i in range(1, 6):
            await publisher.publish(DomainEvent(Module.TASK, Action.UPDATED, {"id": i}))
        await publisher.drain()

        assert received == [1, 2, 3, 4, 5]
        await publisher.close()

    async def test_full_queue_drops_for_that_handler(self, event: DomainEvent) -> None:
        """A backed-up subscriber loses envelopes; publish never waits."""
        publisher = InMemoryPublisher(max_pending=1)
        release = asyncio.Event()
        received: list[bytes] = []

        async def slow(payload: bytes) -> None:
            await release.wait()
            received.append(payload)

        publisher.subscribe(slow)
        await publisher.publish(event)
        await asyncio.wait_for(publisher.publish(event), timeout=0.1)

        release.set()
        await publisher.drain()

        assert len(received) == 1
        assert len(publisher.events) == 2
        await publisher.close()

    async def test_close_stops_pending_delivery(self, event: DomainEvent) -> None:
        publisher = InMemoryPublisher()

        async def stuck(payload: bytes) -> None:
            await asyncio.sleep(30)

        publisher.subscribe(stuck)
        await publisher.publish(event)

        await asyncio.wait_for(publisher.close(), timeout=1.0)

    async def test_unencodable_payload_raises_publish_error(
        self, unencodable: DomainEvent
    ) -> None:
        """Encoding failures surface as EventPublishError and nothing is recorded."""
        publisher = InMemoryPublisher()

        with pytest.raises(EventPublishError):
            await publisher.publish(unencodable)

        assert publisher.events == []


class TestRedisPublisher:
    """Test Redis publisher."""

    async def test_publishes_on_channel(self, event: DomainEvent) -> None:
        client = AsyncMock()
        client.publish = AsyncMock(return_value=2)
        publisher = RedisPublisher(client, channel="updates")

        await publisher.publish(event)

        client.publish.assert_awaited_once_with("updates", event.to_bytes())

    async def test_redis_error_becomes_publish_error(self, event: DomainEvent) -> None:
        client = AsyncMock()
        client.publish = AsyncMock(side_effect=RedisConnectionError("down"))
        publisher = RedisPublisher(client)

        with pytest.raises(EventPublishError):
            await publisher.publish(event)

    async def test_unencodable_payload_raises_publish_error(
        self, unencodable: DomainEvent
    ) -> None:
        client = AsyncMock()
        publisher = RedisPublisher(client)

        with pytest.raises(EventPublishError):
            await publisher.publish(unencodable)

        client.publish.assert_not_awaited()
