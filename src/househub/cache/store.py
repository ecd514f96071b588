"""Byte-oriented cache store abstraction.

The typed accessor only ever talks to a CacheStore, so the backend
(Redis in production, a process-local dict in tests) is swappable.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class CacheStore(ABC):
    """Key/value store of raw bytes with optional per-entry TTL.

    Implementations raise CacheUnavailableError when the backend cannot
    serve a request. Callers above the accessor never see it.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored bytes, or None if the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        """Store bytes under key. ttl is in seconds; None means no expiry."""

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Delete keys. Absent keys are ignored."""

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class InMemoryCacheStore(CacheStore):
    """Process-local store for tests and single-process deployments."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[bytes, float | None]] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()
