"""Fixtures for the application-level tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from househub.api.app import create_app
from househub.config import settings


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Application with in-process cache and events and a SQLite database."""
    monkeypatch.setattr(settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'app.db'}")
    monkeypatch.setattr(settings, "cache_backend", "memory")
    monkeypatch.setattr(settings, "events_backend", "memory")
    monkeypatch.setattr(settings, "log_json", False)

    with TestClient(create_app()) as test_client:
        yield test_client
