"""Typed cache accessor.

Wraps a CacheStore with (de)serialization of domain values and turns
every failure mode into a miss:

- key absent                 -> Miss(ABSENT)
- stored bytes do not parse  -> Miss(CORRUPT)
- store error or timeout     -> Miss(UNAVAILABLE)

Writes and deletes are best effort. Failures are logged and counted,
never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Generic, TypeVar, Union

import orjson
from pydantic import TypeAdapter

from househub.cache.store import CacheStore
from househub.errors import CacheUnavailableError
from househub.observability.metrics import (
    record_cache_error,
    record_cache_hit,
    record_cache_miss,
    record_cache_operation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MissReason(str, Enum):
    """Why a lookup missed. For logs and metrics only."""

    ABSENT = "absent"
    CORRUPT = "corrupt"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True, slots=True)
class Hit(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Miss:
    reason: MissReason = MissReason.ABSENT


CacheResult = Union[Hit[T], Miss]


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


def serialize(value: Any, type_: Any | None = None) -> bytes:
    """Serialize a domain value to JSON bytes."""
    adapter = _adapter(type_ if type_ is not None else type(value))
    return orjson.dumps(adapter.dump_python(value, mode="json"))


def deserialize(raw: bytes, type_: Any) -> Any:
    """Parse JSON bytes into type_.

    Raises:
        ValueError: If raw is not valid JSON or does not match type_
    """
    return _adapter(type_).validate_python(orjson.loads(raw))


class TypedCache:
    """Generic get/set/delete over a byte store.

    Every store call is bounded by ``timeout`` seconds. Cancellation of the
    calling task is not absorbed.
    """

    def __init__(
        self,
        store: CacheStore,
        timeout: float | None = None,
        default_ttl: int | None = None,
    ):
        self.store = store
        self.timeout = timeout
        self.default_ttl = default_ttl

    async def get(self, key: str, type_: Any) -> CacheResult[Any]:
        """Look up key and parse it as type_."""
        start = time.perf_counter()
        try:
            raw = await asyncio.wait_for(self.store.get(key), self.timeout)
        except (CacheUnavailableError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Cache get failed for {key}: {e!r}", extra={"cache_key": key})
            record_cache_error("get")
            record_cache_miss(key, MissReason.UNAVAILABLE.value)
            return Miss(MissReason.UNAVAILABLE)
        finally:
            record_cache_operation("get", time.perf_counter() - start)

        if raw is None:
            record_cache_miss(key, MissReason.ABSENT.value)
            return Miss(MissReason.ABSENT)

        try:
            value = deserialize(raw, type_)
        except ValueError as e:
            logger.warning(f"Corrupt cache entry {key}: {e}", extra={"cache_key": key})
            record_cache_miss(key, MissReason.CORRUPT.value)
            return Miss(MissReason.CORRUPT)

        record_cache_hit(key)
        return Hit(value)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        type_: Any | None = None,
    ) -> bool:
        """Store value under key. Returns False if the write was dropped."""
        try:
            payload = serialize(value, type_)
        except (ValueError, TypeError) as e:
            logger.warning(f"Cannot serialize value for {key}: {e}", extra={"cache_key": key})
            record_cache_error("serialize")
            return False

        ttl = ttl if ttl is not None else self.default_ttl
        start = time.perf_counter()
        try:
            await asyncio.wait_for(self.store.set(key, payload, ttl), self.timeout)
        except (CacheUnavailableError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Cache set failed for {key}: {e!r}", extra={"cache_key": key})
            record_cache_error("set")
            return False
        finally:
            record_cache_operation("set", time.perf_counter() - start)
        return True

    async def delete(self, *keys: str) -> int:
        """Delete keys concurrently. Returns how many deletes succeeded."""
        if not keys:
            return 0
        start = time.perf_counter()
        try:
            results = await asyncio.gather(*(self._delete_one(key) for key in keys))
        finally:
            record_cache_operation("delete", time.perf_counter() - start)
        return sum(results)

    async def _delete_one(self, key: str) -> bool:
        try:
            await asyncio.wait_for(self.store.delete(key), self.timeout)
        except (CacheUnavailableError, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"Cache delete failed for {key}: {e!r}", extra={"cache_key": key})
            record_cache_error("delete")
            return False
        return True
