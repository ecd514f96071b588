"""Tests for cache runtime wiring."""

from __future__ import annotations

import pytest

from househub.cache import runtime
from househub.cache.store import InMemoryCacheStore
from househub.config import settings


class TestCacheRuntime:
    """Backend selection and the shared typed cache."""

    @pytest.mark.asyncio
    async def test_typed_cache_uses_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "cache_backend", "memory")
        monkeypatch.setattr(settings, "cache_timeout_seconds", 0.25)
        monkeypatch.setattr(settings, "cache_ttl_seconds", 120)

        try:
            cache = await runtime.get_typed_cache()

            assert isinstance(cache.store, InMemoryCacheStore)
            assert cache.store is await runtime.get_cache_store()
            assert cache.timeout == 0.25
            assert cache.default_ttl == 120
        finally:
            await runtime.close_cache_store()

    @pytest.mark.asyncio
    async def test_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "cache_backend", "memcached")

        with pytest.raises(ValueError):
            await runtime.create_cache_store()
