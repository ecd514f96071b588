"""WebSocket gateway for real-time updates.

Every envelope published on the updates channel is forwarded verbatim
to connected clients:

    {"module": "TASK", "action": "CREATED", "data": {...}}

Clients can subscribe to:
- All updates: /ws
- One module: /ws?module=BILL
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import orjson
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from househub.api.middleware import REQUEST_ID_HEADER, new_request_id
from househub.observability.logging import LogContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


@dataclass
class Subscription:
    """WebSocket subscription with an optional module filter."""

    websocket: WebSocket
    module_filter: str | None = None

    def __hash__(self) -> int:
        return id(self.websocket)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subscription):
            return NotImplemented
        return self.websocket is other.websocket


class WebSocketManager:
    """Manages WebSocket connections and update fan-out."""

    def __init__(self) -> None:
        self._subscriptions: set[Subscription] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, module_filter: str | None = None) -> Subscription:
        """Accept WebSocket connection and create subscription."""
        await websocket.accept()
        subscription = Subscription(
            websocket=websocket,
            module_filter=module_filter.upper() if module_filter else None,
        )
        async with self._lock:
            self._subscriptions.add(subscription)
        logger.info(
            f"WebSocket connected (total: {len(self._subscriptions)}, module={module_filter})"
        )
        return subscription

    async def disconnect(self, subscription: Subscription) -> None:
        """Remove subscription on disconnect."""
        async with self._lock:
            self._subscriptions.discard(subscription)
        logger.info(f"WebSocket disconnected (remaining: {len(self._subscriptions)})")

    async def broadcast(self, payload: bytes) -> None:
        """Forward one encoded envelope to every matching subscriber.

        A client whose send fails is dropped; the others still receive
        the update.
        """
        async with self._lock:
            subscriptions = list(self._subscriptions)
        if not subscriptions:
            return

        module = self._module_of(payload)
        text = payload.decode() if isinstance(payload, bytes) else payload
        for subscription in subscriptions:
            if subscription.module_filter and subscription.module_filter != module:
                continue
            try:
                await subscription.websocket.send_text(text)
            except Exception as e:
                logger.debug(f"Failed to send to WebSocket: {e}")
                await self.disconnect(subscription)

    @staticmethod
    def _module_of(payload: bytes) -> str | None:
        try:
            parsed = orjson.loads(payload)
        except orjson.JSONDecodeError:
            return None
        return parsed.get("module") if isinstance(parsed, dict) else None

    @property
    def connection_count(self) -> int:
        """Get current number of connections."""
        return len(self._subscriptions)


# Global WebSocket manager instance
ws_manager = WebSocketManager()


def get_ws_manager() -> WebSocketManager:
    """Get WebSocket manager instance."""
    return ws_manager


@router.websocket("/ws")
async def websocket_updates(
    websocket: WebSocket,
    module: str | None = Query(default=None, description="Only forward updates of this module"),
) -> None:
    """WebSocket endpoint for real-time updates.

    Updates are sent as JSON text messages. Clients may send "ping" and
    receive "pong". Log lines for the connection carry its request ID.
    """
    request_id = websocket.headers.get(REQUEST_ID_HEADER) or new_request_id()
    with LogContext(request_id=request_id):
        subscription = await ws_manager.connect(websocket, module_filter=module)

        try:
            while True:
                try:
                    message = await websocket.receive_text()
                    if message == "ping":
                        await websocket.send_text("pong")
                except WebSocketDisconnect:
                    break
        finally:
            await ws_manager.disconnect(subscription)
