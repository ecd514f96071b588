"""Tests for the SQL repositories."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from househub.errors import ConflictError, NotFoundError, SystemOfRecordError
from househub.persistence.base import UNSET
from househub.persistence.repositories import (
    INVITE_CODE_LENGTH,
    SqlHomeRepository,
    SqlShoppingRepository,
    SqlTaskRepository,
    SqlUserRepository,
)


@pytest.fixture
def users(session_factory: async_sessionmaker[AsyncSession]) -> SqlUserRepository:
    return SqlUserRepository(session_factory)


@pytest.fixture
def homes(session_factory: async_sessionmaker[AsyncSession]) -> SqlHomeRepository:
    return SqlHomeRepository(session_factory)


class TestSqlRepository:
    """Transaction handling shared by every repository."""

    async def test_integrity_error_becomes_conflict(self, users: SqlUserRepository) -> None:
        await users.create("a@example.com", "A")

        with pytest.raises(ConflictError):
            await users.create("a@example.com", "Again")

    async def test_conflict_is_a_system_of_record_error(self, users: SqlUserRepository) -> None:
        await users.create("b@example.com", "B")

        with pytest.raises(SystemOfRecordError):
            await users.create("b@example.com", "B")

    async def test_not_found(self, users: SqlUserRepository) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await users.get(99)

        assert exc_info.value.entity == "user"
        assert exc_info.value.entity_id == 99

    async def test_failed_transaction_rolls_back(self, users: SqlUserRepository) -> None:
        with pytest.raises(NotFoundError):
            await users.update_name(99, "Nobody")

        user = await users.create("c@example.com", "C")
        assert (await users.get(user.id)).name == "C"


class TestSqlHomeRepository:
    """Homes and invite codes."""

    async def test_invite_code_shape(self, homes: SqlHomeRepository) -> None:
        code = await homes.generate_unique_invite_code()

        assert len(code) == INVITE_CODE_LENGTH
        assert code.isalnum()

    async def test_find_by_invite_code(
        self, homes: SqlHomeRepository, users: SqlUserRepository
    ) -> None:
        owner = await users.create("o@example.com", "O")
        home = await homes.create("Home", owner.id, "ABCD1234")

        found = await homes.find_by_invite_code("ABCD1234")

        assert found is not None and found.id == home.id
        assert await homes.find_by_invite_code("abcd1234") is None
        assert await homes.is_member(home.id, owner.id)

    async def test_find_dependents(
        self,
        homes: SqlHomeRepository,
        users: SqlUserRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        owner = await users.create("o@example.com", "O")
        home = await homes.create("Home", owner.id, "CODE0001")
        tasks = SqlTaskRepository(session_factory)
        task = await tasks.create(home.id, "Dishes", "", "daily")
        assignment = await tasks.assign_user(task.id, owner.id, datetime.now(timezone.utc))

        dependents = await homes.find_dependents(home.id)

        assert dependents.member_ids == [owner.id]
        assert dependents.task_ids == [task.id]
        assert dependents.assignment_ids == [assignment.id]
        assert dependents.room_ids == []


class TestSqlTaskRepository:
    """Assignments ordering."""

    async def test_closest_skips_completed(
        self,
        users: SqlUserRepository,
        homes: SqlHomeRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        owner = await users.create("o@example.com", "O")
        home = await homes.create("Home", owner.id, "CODE0002")
        tasks = SqlTaskRepository(session_factory)
        task = await tasks.create(home.id, "Dishes", "", "daily")
        now = datetime.now(timezone.utc)
        first = await tasks.assign_user(task.id, owner.id, now)
        second = await tasks.assign_user(task.id, owner.id, now + timedelta(hours=1))

        assert (await tasks.find_closest_assignment_for_user(owner.id)).id == first.id  # type: ignore[union-attr]

        await tasks.mark_completed(first.id)
        assert (await tasks.find_closest_assignment_for_user(owner.id)).id == second.id  # type: ignore[union-attr]

        await tasks.mark_completed(second.id)
        assert await tasks.find_closest_assignment_for_user(owner.id) is None

    async def test_round_trip_is_utc(
        self,
        users: SqlUserRepository,
        homes: SqlHomeRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        owner = await users.create("o@example.com", "O")
        home = await homes.create("Home", owner.id, "CODE0003")
        tasks = SqlTaskRepository(session_factory)
        when = datetime(2026, 3, 1, 8, 30, tzinfo=timezone.utc)
        assignment = await tasks.assign_user(
            (await tasks.create(home.id, "Plants", "", "weekly")).id, owner.id, when
        )

        loaded = await tasks.get_assignment(assignment.id)

        assert loaded.assigned_date == when
        assert loaded.assigned_date.tzinfo is not None


class TestSqlShoppingRepository:
    """Partial item edits."""

    async def test_unset_fields_are_untouched(
        self,
        users: SqlUserRepository,
        homes: SqlHomeRepository,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        owner = await users.create("o@example.com", "O")
        home = await homes.create("Home", owner.id, "CODE0004")
        shopping = SqlShoppingRepository(session_factory)
        category = await shopping.create_category(home.id, "Food")
        item = await shopping.create_item(category.id, owner.id, "Rice", image="rice.png")

        edited = await shopping.edit_item(item.id, name="Brown rice", link=UNSET)

        assert edited.name == "Brown rice"
        assert edited.image == "rice.png"
