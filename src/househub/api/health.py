"""Health check endpoints.

- /health/live  - Liveness probe (always OK while the process runs)
- /health/ready - Readiness probe (database and cache store)

The cache is not required for correctness, so a failing cache store
reports "degraded" rather than "unhealthy".
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from househub.cache.runtime import get_cache_store
from househub.persistence.db import health_check as db_health_check

router = APIRouter(prefix="/health", tags=["health"])

CHECK_TIMEOUT = 5.0


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of a single component."""

    name: str
    status: HealthStatus
    latency_ms: float
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            result["message"] = self.message
        return result


async def _check(
    name: str, probe: Callable[[], Awaitable[bool]], failed: HealthStatus
) -> ComponentHealth:
    start = time.monotonic()
    try:
        healthy = await asyncio.wait_for(probe(), timeout=CHECK_TIMEOUT)
        message = None if healthy else f"{name} check failed"
    except asyncio.TimeoutError:
        healthy, message = False, f"{name} check timed out"
    latency = (time.monotonic() - start) * 1000
    return ComponentHealth(
        name=name,
        status=HealthStatus.HEALTHY if healthy else failed,
        latency_ms=latency,
        message=message,
    )


async def check_database() -> ComponentHealth:
    """Check database connectivity."""
    return await _check("database", db_health_check, HealthStatus.UNHEALTHY)


async def check_cache() -> ComponentHealth:
    """Check cache store connectivity."""

    async def probe() -> bool:
        store = await get_cache_store()
        return await store.health_check()

    return await _check("cache", probe, HealthStatus.DEGRADED)


@router.get("/live")
async def liveness() -> dict[str, str]:
    return {"status": HealthStatus.HEALTHY.value}


@router.get("/ready")
async def readiness() -> JSONResponse:
    """Readiness report. 503 only when the database is unavailable."""
    components = await asyncio.gather(check_database(), check_cache())

    overall = HealthStatus.HEALTHY
    for component in components:
        if component.status == HealthStatus.UNHEALTHY:
            overall = HealthStatus.UNHEALTHY
        elif component.status == HealthStatus.DEGRADED and overall == HealthStatus.HEALTHY:
            overall = HealthStatus.DEGRADED

    return JSONResponse(
        status_code=503 if overall == HealthStatus.UNHEALTHY else 200,
        content={
            "status": overall.value,
            "checks": {c.name: c.to_dict() for c in components},
        },
    )
