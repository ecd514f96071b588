"""FastAPI application factory for HouseHub.

Hosts the real-time gateway (/ws) next to health and metrics endpoints
and wires the domain services onto ``app.state.services``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from househub.api import health, metrics, websocket
from househub.api.middleware import CorrelationMiddleware
from househub.api.websocket import get_ws_manager
from househub.cache.aside import CacheAside
from househub.cache.redis import close_redis, get_redis
from househub.cache.runtime import close_cache_store, get_typed_cache
from househub.config import settings
from househub.events.publisher import InMemoryPublisher
from househub.events.runtime import close_publisher, get_publisher
from househub.events.subscriber import RedisUpdatesSubscriber
from househub.observability.logging import configure_logging
from househub.observability.metrics import get_metrics
from househub.persistence.db import close_db, get_session_factory, init_db
from househub.services import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle.

    On startup:
    - Configure structured logging
    - Initialize Prometheus metrics
    - Initialize database, cache store and event publisher
    - Build the domain services
    - Relay the updates channel to WebSocket clients

    On shutdown:
    - Stop the relay
    - Close publisher, cache store, Redis and database connections
    """
    configure_logging(json_format=settings.log_json, level=settings.log_level)
    get_metrics()

    logger.info(f"Starting HouseHub ({settings.env})")
    await init_db()
    cache = await get_typed_cache()
    publisher = await get_publisher()

    aside = CacheAside(
        cache,
        publisher,
        ttl=settings.cache_ttl_seconds,
        publish_timeout=settings.publish_timeout_seconds,
    )
    app.state.services = build_services(get_session_factory(), aside)

    ws_manager = get_ws_manager()
    subscriber: RedisUpdatesSubscriber | None = None
    if isinstance(publisher, InMemoryPublisher):
        publisher.subscribe(ws_manager.broadcast)
    else:
        subscriber = RedisUpdatesSubscriber(await get_redis(), channel=settings.events_channel)
        subscriber.subscribe(ws_manager.broadcast)
        await subscriber.start()
    logger.info("WebSocket relay subscribed to updates channel")

    logger.info("HouseHub startup complete")

    yield

    logger.info("Shutting down HouseHub")
    if subscriber is not None:
        await subscriber.stop()
    await close_publisher()
    await close_cache_store()
    await close_redis()
    await close_db()
    logger.info("HouseHub shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HouseHub",
        description="Household management backend with real-time updates",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    app.add_middleware(CorrelationMiddleware)

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(websocket.router)

    return app
