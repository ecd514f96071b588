"""Fixtures shared by the service tests."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from househub.core.models import Home, User
from househub.persistence.repositories import SqlUserRepository
from househub.services import Services


@pytest.fixture
def user_repo(session_factory: async_sessionmaker[AsyncSession]) -> SqlUserRepository:
    return SqlUserRepository(session_factory)


@pytest.fixture
async def owner(user_repo: SqlUserRepository) -> User:
    return await user_repo.create("owner@example.com", "Owner")


@pytest.fixture
async def member(user_repo: SqlUserRepository) -> User:
    return await user_repo.create("member@example.com", "Member")


@pytest.fixture
async def home(services: Services, owner: User) -> Home:
    return await services.homes.create_home("Flat 3B", owner.id)
