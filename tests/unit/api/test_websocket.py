"""Tests for the WebSocket gateway."""

from __future__ import annotations

import orjson
import pytest
from fastapi.testclient import TestClient

from househub.api.websocket import WebSocketManager
from househub.core.models import User
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.db import get_session_factory
from househub.persistence.repositories import SqlUserRepository


class FakeWebSocket:
    """Records text frames; optionally fails on send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.sent: list[str] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("connection closed")
        self.sent.append(text)


def envelope(module: Module) -> bytes:
    return DomainEvent(module, Action.CREATED, {"id": 1}).to_bytes()


class TestWebSocketManager:
    """Fan-out of encoded envelopes."""

    @pytest.mark.asyncio
    async def test_broadcast_to_all(self) -> None:
        manager = WebSocketManager()
        first, second = FakeWebSocket(), FakeWebSocket()
        await manager.connect(first)  # type: ignore[arg-type]
        await manager.connect(second)  # type: ignore[arg-type]

        await manager.broadcast(envelope(Module.TASK))

        assert first.accepted and second.accepted
        assert orjson.loads(first.sent[0]) == {
            "module": "TASK",
            "action": "CREATED",
            "data": {"id": 1},
        }
        assert second.sent == first.sent

    @pytest.mark.asyncio
    async def test_module_filter(self) -> None:
        manager = WebSocketManager()
        bills_only = FakeWebSocket()
        await manager.connect(bills_only, module_filter="bill")  # type: ignore[arg-type]

        await manager.broadcast(envelope(Module.TASK))
        await manager.broadcast(envelope(Module.BILL))

        assert [orjson.loads(m)["module"] for m in bills_only.sent] == ["BILL"]

    @pytest.mark.asyncio
    async def test_failed_client_is_dropped(self) -> None:
        """One broken connection does not stop delivery to the others."""
        manager = WebSocketManager()
        broken, healthy = FakeWebSocket(fail=True), FakeWebSocket()
        await manager.connect(broken)  # type: ignore[arg-type]
        await manager.connect(healthy)  # type: ignore[arg-type]

        await manager.broadcast(envelope(Module.POLL))

        assert len(healthy.sent) == 1
        assert manager.connection_count == 1

    @pytest.mark.asyncio
    async def test_disconnect(self) -> None:
        manager = WebSocketManager()
        subscription = await manager.connect(FakeWebSocket())  # type: ignore[arg-type]

        await manager.disconnect(subscription)
        await manager.broadcast(envelope(Module.HOME))

        assert manager.connection_count == 0


class TestWebSocketEndpoint:
    """The /ws endpoint wired to the updates channel."""

    def test_ping_pong(self, client: TestClient) -> None:
        with client.websocket_connect("/ws") as ws:
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_mutation_reaches_client(self, client: TestClient) -> None:
        """A service write is announced to connected clients."""
        services = client.app.state.services  # type: ignore[attr-defined]
        users = SqlUserRepository(get_session_factory())

        with client.websocket_connect("/ws?module=USER") as ws:
            ws.send_text("ping")
            assert ws.receive_text() == "pong"

            user: User = client.portal.call(users.create, "ws@example.com", "Before")
            client.portal.call(services.users.update_user, user.id, "After")

            message = orjson.loads(ws.receive_text())

        assert message["module"] == "USER"
        assert message["action"] == "UPDATED"
        assert message["data"]["name"] == "After"
