"""SQLAlchemy implementations of the system-of-record ports.

Each repository call runs in its own transaction: rows are converted to
domain models inside the session and the transaction commits on the way
out. SQLAlchemy errors are translated into SystemOfRecordError so the
services never see driver exceptions.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from househub.core.models import (
    AssignmentStatus,
    Bill,
    BillCategory,
    Home,
    HomeNotification,
    HomeRole,
    Notification,
    Poll,
    PollStatus,
    Room,
    ShoppingCategory,
    ShoppingItem,
    Task,
    TaskAssignment,
    User,
    Vote,
)
from househub.errors import (
    AlreadyMemberError,
    BillAlreadyPaidError,
    ConflictError,
    NotFoundError,
    PollClosedError,
    SystemOfRecordError,
)
from househub.persistence import base
from househub.persistence.base import UNSET, HomeDependents
from househub.persistence.tables import (
    BillCategoryTable,
    BillTable,
    HomeMembershipTable,
    HomeNotificationTable,
    HomeTable,
    NotificationTable,
    PollOptionTable,
    PollTable,
    RoomTable,
    ShoppingCategoryTable,
    ShoppingItemTable,
    TaskAssignmentTable,
    TaskTable,
    UserTable,
    VoteTable,
)

RowT = TypeVar("RowT")

INVITE_CODE_ALPHABET = string.ascii_letters + string.digits
INVITE_CODE_LENGTH = 8


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SqlRepository:
    """Base repository holding the session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Transactional scope translating driver errors."""
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            raise ConflictError(str(e.orig)) from e
        except SQLAlchemyError as e:
            await session.rollback()
            raise SystemOfRecordError(str(e)) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @staticmethod
    async def _require(session: AsyncSession, table: type[RowT], entity_id: int, entity: str) -> RowT:
        row = await session.get(table, entity_id)
        if row is None:
            raise NotFoundError(entity, entity_id)
        return row


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


class SqlUserRepository(SqlRepository, base.UserRepository):
    async def get(self, user_id: int) -> User:
        async with self.transaction() as session:
            row = await self._require(session, UserTable, user_id, "user")
            return User.model_validate(row)

    async def create(self, email: str, name: str, password_hash: str = "") -> User:
        async with self.transaction() as session:
            row = UserTable(email=email, name=name, password_hash=password_hash)
            session.add(row)
            await session.flush()
            return User.model_validate(row)

    async def update_name(self, user_id: int, name: str) -> User:
        async with self.transaction() as session:
            row = await self._require(session, UserTable, user_id, "user")
            row.name = name
            await session.flush()
            return User.model_validate(row)

    async def update_avatar(self, user_id: int, avatar: str) -> User:
        async with self.transaction() as session:
            row = await self._require(session, UserTable, user_id, "user")
            row.avatar = avatar
            await session.flush()
            return User.model_validate(row)


# -----------------------------------------------------------------------------
# Homes
# -----------------------------------------------------------------------------


class SqlHomeRepository(SqlRepository, base.HomeRepository):
    async def create(self, name: str, owner_id: int, invite_code: str) -> Home:
        async with self.transaction() as session:
            row = HomeTable(
                name=name,
                invite_code=invite_code,
                memberships=[HomeMembershipTable(user_id=owner_id, role=HomeRole.ADMIN.value)],
            )
            session.add(row)
            await session.flush()
            return Home.model_validate(row)

    async def get(self, home_id: int) -> Home:
        async with self.transaction() as session:
            row = await self._require(session, HomeTable, home_id, "home")
            return Home.model_validate(row)

    async def find_by_invite_code(self, code: str) -> Home | None:
        async with self.transaction() as session:
            result = await session.execute(select(HomeTable).where(HomeTable.invite_code == code))
            row = result.scalar_one_or_none()
            return Home.model_validate(row) if row is not None else None

    async def generate_unique_invite_code(self) -> str:
        async with self.transaction() as session:
            while True:
                code = "".join(
                    secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH)
                )
                count = await session.scalar(
                    select(func.count()).select_from(HomeTable).where(HomeTable.invite_code == code)
                )
                if not count:
                    return code

    async def regenerate_code(self, home_id: int, code: str) -> Home:
        async with self.transaction() as session:
            row = await self._require(session, HomeTable, home_id, "home")
            row.invite_code = code
            await session.flush()
            return Home.model_validate(row)

    async def is_member(self, home_id: int, user_id: int) -> bool:
        async with self.transaction() as session:
            count = await session.scalar(
                select(func.count())
                .select_from(HomeMembershipTable)
                .where(HomeMembershipTable.home_id == home_id, HomeMembershipTable.user_id == user_id)
            )
            return bool(count)

    async def add_member(self, home_id: int, user_id: int, role: str) -> Home:
        async with self.transaction() as session:
            row = await self._require(session, HomeTable, home_id, "home")
            if any(m.user_id == user_id for m in row.memberships):
                raise AlreadyMemberError(home_id, user_id)
            row.memberships.append(HomeMembershipTable(user_id=user_id, role=role))
            await session.flush()
            return Home.model_validate(row)

    async def delete_member(self, home_id: int, user_id: int) -> Home:
        async with self.transaction() as session:
            row = await self._require(session, HomeTable, home_id, "home")
            remaining = [m for m in row.memberships if m.user_id != user_id]
            if len(remaining) == len(row.memberships):
                raise NotFoundError("membership", (home_id, user_id))
            row.memberships = remaining
            await session.flush()
            return Home.model_validate(row)

    async def find_dependents(self, home_id: int) -> HomeDependents:
        async with self.transaction() as session:
            home = await self._require(session, HomeTable, home_id, "home")

            async def ids(stmt: Any) -> list[int]:
                return list((await session.scalars(stmt)).all())

            category_ids = await ids(
                select(ShoppingCategoryTable.id).where(ShoppingCategoryTable.home_id == home_id)
            )
            return HomeDependents(
                member_ids=[m.user_id for m in home.memberships],
                task_ids=await ids(select(TaskTable.id).where(TaskTable.home_id == home_id)),
                room_ids=await ids(select(RoomTable.id).where(RoomTable.home_id == home_id)),
                bill_ids=await ids(select(BillTable.id).where(BillTable.home_id == home_id)),
                bill_category_ids=await ids(
                    select(BillCategoryTable.id).where(BillCategoryTable.home_id == home_id)
                ),
                poll_ids=await ids(select(PollTable.id).where(PollTable.home_id == home_id)),
                shopping_category_ids=category_ids,
                shopping_item_ids=await ids(
                    select(ShoppingItemTable.id).where(
                        ShoppingItemTable.category_id.in_(category_ids)
                    )
                ),
                assignment_ids=await ids(
                    select(TaskAssignmentTable.id).where(TaskAssignmentTable.home_id == home_id)
                ),
            )

    async def delete(self, home_id: int) -> None:
        async with self.transaction() as session:
            await self._require(session, HomeTable, home_id, "home")

            poll_ids = select(PollTable.id).where(PollTable.home_id == home_id)
            option_ids = select(PollOptionTable.id).where(PollOptionTable.poll_id.in_(poll_ids))
            category_ids = select(ShoppingCategoryTable.id).where(
                ShoppingCategoryTable.home_id == home_id
            )

            # Children before parents
            for stmt in (
                delete(VoteTable).where(VoteTable.option_id.in_(option_ids)),
                delete(PollOptionTable).where(PollOptionTable.poll_id.in_(poll_ids)),
                delete(PollTable).where(PollTable.home_id == home_id),
                delete(TaskAssignmentTable).where(TaskAssignmentTable.home_id == home_id),
                delete(TaskTable).where(TaskTable.home_id == home_id),
                delete(RoomTable).where(RoomTable.home_id == home_id),
                delete(BillTable).where(BillTable.home_id == home_id),
                delete(BillCategoryTable).where(BillCategoryTable.home_id == home_id),
                delete(ShoppingItemTable).where(ShoppingItemTable.category_id.in_(category_ids)),
                delete(ShoppingCategoryTable).where(ShoppingCategoryTable.home_id == home_id),
                delete(HomeNotificationTable).where(HomeNotificationTable.home_id == home_id),
                delete(HomeMembershipTable).where(HomeMembershipTable.home_id == home_id),
                delete(HomeTable).where(HomeTable.id == home_id),
            ):
                await session.execute(stmt)


# -----------------------------------------------------------------------------
# Tasks
# -----------------------------------------------------------------------------


class SqlTaskRepository(SqlRepository, base.TaskRepository):
    async def create(
        self,
        home_id: int,
        name: str,
        description: str,
        schedule_type: str,
        room_id: int | None = None,
    ) -> Task:
        async with self.transaction() as session:
            row = TaskTable(
                home_id=home_id,
                name=name,
                description=description,
                schedule_type=schedule_type,
                room_id=room_id,
            )
            session.add(row)
            await session.flush()
            return Task.model_validate(row)

    async def get(self, task_id: int) -> Task:
        async with self.transaction() as session:
            row = await self._require(session, TaskTable, task_id, "task")
            return Task.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[Task]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(TaskTable).where(TaskTable.home_id == home_id).order_by(TaskTable.id)
            )
            return [Task.model_validate(row) for row in rows]

    async def list_for_room(self, room_id: int) -> list[Task]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(TaskTable).where(TaskTable.room_id == room_id).order_by(TaskTable.id)
            )
            return [Task.model_validate(row) for row in rows]

    async def delete(self, task_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, TaskTable, task_id, "task")
            await session.execute(
                delete(TaskAssignmentTable).where(TaskAssignmentTable.task_id == task_id)
            )
            await session.delete(row)

    async def reassign_room(self, task_id: int, room_id: int) -> Task:
        async with self.transaction() as session:
            row = await self._require(session, TaskTable, task_id, "task")
            row.room_id = room_id
            await session.flush()
            return Task.model_validate(row)

    async def assign_user(self, task_id: int, user_id: int, date: datetime) -> TaskAssignment:
        async with self.transaction() as session:
            task = await self._require(session, TaskTable, task_id, "task")
            row = TaskAssignmentTable(
                task_id=task_id,
                home_id=task.home_id,
                user_id=user_id,
                status=AssignmentStatus.ASSIGNED.value,
                assigned_date=date,
            )
            session.add(row)
            await session.flush()
            return TaskAssignment.model_validate(row)

    async def get_assignment(self, assignment_id: int) -> TaskAssignment:
        async with self.transaction() as session:
            row = await self._require(session, TaskAssignmentTable, assignment_id, "assignment")
            return TaskAssignment.model_validate(row)

    async def list_assignments_for_task(self, task_id: int) -> list[TaskAssignment]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(TaskAssignmentTable)
                .where(TaskAssignmentTable.task_id == task_id)
                .order_by(TaskAssignmentTable.id)
            )
            return [TaskAssignment.model_validate(row) for row in rows]

    async def list_assignments_for_user(self, user_id: int) -> list[TaskAssignment]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(TaskAssignmentTable)
                .where(TaskAssignmentTable.user_id == user_id)
                .order_by(TaskAssignmentTable.id)
            )
            return [TaskAssignment.model_validate(row) for row in rows]

    async def find_closest_assignment_for_user(self, user_id: int) -> TaskAssignment | None:
        async with self.transaction() as session:
            row = await session.scalar(
                select(TaskAssignmentTable)
                .where(
                    TaskAssignmentTable.user_id == user_id,
                    TaskAssignmentTable.status != AssignmentStatus.COMPLETED.value,
                )
                .order_by(TaskAssignmentTable.assigned_date.asc(), TaskAssignmentTable.id.asc())
                .limit(1)
            )
            return TaskAssignment.model_validate(row) if row is not None else None

    async def mark_completed(self, assignment_id: int) -> TaskAssignment:
        async with self.transaction() as session:
            row = await self._require(session, TaskAssignmentTable, assignment_id, "assignment")
            row.status = AssignmentStatus.COMPLETED.value
            row.complete_date = _now()
            await session.flush()
            return TaskAssignment.model_validate(row)

    async def mark_uncompleted(self, assignment_id: int) -> TaskAssignment:
        async with self.transaction() as session:
            row = await self._require(session, TaskAssignmentTable, assignment_id, "assignment")
            row.status = AssignmentStatus.ASSIGNED.value
            row.complete_date = None
            await session.flush()
            return TaskAssignment.model_validate(row)

    async def delete_assignment(self, assignment_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, TaskAssignmentTable, assignment_id, "assignment")
            await session.delete(row)


# -----------------------------------------------------------------------------
# Rooms
# -----------------------------------------------------------------------------


class SqlRoomRepository(SqlRepository, base.RoomRepository):
    async def create(self, home_id: int, name: str) -> Room:
        async with self.transaction() as session:
            row = RoomTable(home_id=home_id, name=name)
            session.add(row)
            await session.flush()
            return Room.model_validate(row)

    async def get(self, room_id: int) -> Room:
        async with self.transaction() as session:
            row = await self._require(session, RoomTable, room_id, "room")
            return Room.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[Room]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(RoomTable).where(RoomTable.home_id == home_id).order_by(RoomTable.id)
            )
            return [Room.model_validate(row) for row in rows]

    async def delete(self, room_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, RoomTable, room_id, "room")
            await session.execute(
                update(TaskTable).where(TaskTable.room_id == room_id).values(room_id=None)
            )
            await session.delete(row)


# -----------------------------------------------------------------------------
# Bills
# -----------------------------------------------------------------------------


class SqlBillRepository(SqlRepository, base.BillRepository):
    async def create(
        self,
        home_id: int,
        uploaded_by: int,
        total_amount: float,
        period_start: datetime,
        period_end: datetime,
        type: str = "",
        bill_category_id: int | None = None,
        ocr_data: Any = None,
    ) -> Bill:
        async with self.transaction() as session:
            row = BillTable(
                home_id=home_id,
                uploaded_by=uploaded_by,
                total_amount=total_amount,
                period_start=period_start,
                period_end=period_end,
                type=type,
                bill_category_id=bill_category_id,
                ocr_data=ocr_data,
            )
            session.add(row)
            await session.flush()
            return Bill.model_validate(row)

    async def get(self, bill_id: int) -> Bill:
        async with self.transaction() as session:
            row = await self._require(session, BillTable, bill_id, "bill")
            return Bill.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[Bill]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(BillTable).where(BillTable.home_id == home_id).order_by(BillTable.id)
            )
            return [Bill.model_validate(row) for row in rows]

    async def list_for_category(self, category_id: int) -> list[Bill]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(BillTable)
                .where(BillTable.bill_category_id == category_id)
                .order_by(BillTable.id)
            )
            return [Bill.model_validate(row) for row in rows]

    async def delete(self, bill_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, BillTable, bill_id, "bill")
            await session.delete(row)

    async def mark_payed(self, bill_id: int) -> Bill:
        async with self.transaction() as session:
            row = await self._require(session, BillTable, bill_id, "bill")
            if row.is_payed:
                raise BillAlreadyPaidError(bill_id)
            row.is_payed = True
            row.payment_date = _now()
            await session.flush()
            return Bill.model_validate(row)


class SqlBillCategoryRepository(SqlRepository, base.BillCategoryRepository):
    async def create(self, home_id: int, name: str, color: str | None = None) -> BillCategory:
        async with self.transaction() as session:
            row = BillCategoryTable(home_id=home_id, name=name)
            if color:
                row.color = color
            session.add(row)
            await session.flush()
            return BillCategory.model_validate(row)

    async def get(self, category_id: int) -> BillCategory:
        async with self.transaction() as session:
            row = await self._require(session, BillCategoryTable, category_id, "bill category")
            return BillCategory.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[BillCategory]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(BillCategoryTable)
                .where(BillCategoryTable.home_id == home_id)
                .order_by(BillCategoryTable.id)
            )
            return [BillCategory.model_validate(row) for row in rows]

    async def update(
        self, category_id: int, name: str | None = None, color: str | None = None
    ) -> BillCategory:
        async with self.transaction() as session:
            row = await self._require(session, BillCategoryTable, category_id, "bill category")
            if name is not None:
                row.name = name
            if color is not None:
                row.color = color
            await session.flush()
            return BillCategory.model_validate(row)

    async def delete(self, category_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, BillCategoryTable, category_id, "bill category")
            await session.execute(
                update(BillTable)
                .where(BillTable.bill_category_id == category_id)
                .values(bill_category_id=None)
            )
            await session.delete(row)


# -----------------------------------------------------------------------------
# Polls
# -----------------------------------------------------------------------------


class SqlPollRepository(SqlRepository, base.PollRepository):
    async def create(
        self,
        home_id: int,
        question: str,
        type: str,
        options: list[str],
        allow_revote: bool = False,
        ends_at: datetime | None = None,
    ) -> Poll:
        async with self.transaction() as session:
            row = PollTable(
                home_id=home_id,
                question=question,
                type=type,
                status=PollStatus.OPEN.value,
                allow_revote=allow_revote,
                ends_at=ends_at,
                options=[PollOptionTable(title=title, votes=[]) for title in options],
            )
            session.add(row)
            await session.flush()
            return Poll.model_validate(row)

    async def get(self, poll_id: int) -> Poll:
        async with self.transaction() as session:
            row = await self._require(session, PollTable, poll_id, "poll")
            return Poll.model_validate(row)

    async def get_by_option(self, option_id: int) -> Poll:
        async with self.transaction() as session:
            option = await self._require(session, PollOptionTable, option_id, "poll option")
            row = await self._require(session, PollTable, option.poll_id, "poll")
            return Poll.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[Poll]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(PollTable).where(PollTable.home_id == home_id).order_by(PollTable.id)
            )
            return [Poll.model_validate(row) for row in rows]

    async def close(self, poll_id: int) -> Poll:
        async with self.transaction() as session:
            row = await self._require(session, PollTable, poll_id, "poll")
            if row.status == PollStatus.CLOSED.value:
                raise PollClosedError(poll_id)
            row.status = PollStatus.CLOSED.value
            await session.flush()
            return Poll.model_validate(row)

    async def delete(self, poll_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, PollTable, poll_id, "poll")
            await session.delete(row)

    async def vote(self, user_id: int, option_id: int) -> Vote:
        async with self.transaction() as session:
            option = await self._require(session, PollOptionTable, option_id, "poll option")
            poll = await self._require(session, PollTable, option.poll_id, "poll")
            if poll.status == PollStatus.CLOSED.value:
                raise PollClosedError(poll.id)
            row = VoteTable(user_id=user_id, option_id=option_id)
            option.votes.append(row)
            await session.flush()
            return Vote.model_validate(row)

    async def unvote(self, user_id: int, poll_id: int) -> None:
        async with self.transaction() as session:
            poll = await self._require(session, PollTable, poll_id, "poll")
            option_ids = [option.id for option in poll.options]
            await session.execute(
                delete(VoteTable).where(
                    VoteTable.user_id == user_id, VoteTable.option_id.in_(option_ids)
                )
            )


# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------


class SqlNotificationRepository(SqlRepository, base.NotificationRepository):
    async def create(
        self, from_user_id: int | None, to_user_id: int, description: str
    ) -> Notification:
        async with self.transaction() as session:
            row = NotificationTable(
                from_user_id=from_user_id, to=to_user_id, description=description
            )
            session.add(row)
            await session.flush()
            return Notification.model_validate(row)

    async def get(self, notification_id: int) -> Notification:
        async with self.transaction() as session:
            row = await self._require(session, NotificationTable, notification_id, "notification")
            return Notification.model_validate(row)

    async def list_for_user(self, user_id: int) -> list[Notification]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(NotificationTable)
                .where(NotificationTable.to == user_id)
                .order_by(NotificationTable.created_at.desc(), NotificationTable.id.desc())
            )
            return [Notification.model_validate(row) for row in rows]

    async def mark_read(self, notification_id: int) -> Notification:
        async with self.transaction() as session:
            row = await self._require(session, NotificationTable, notification_id, "notification")
            row.read = True
            await session.flush()
            return Notification.model_validate(row)

    async def create_home_notification(
        self, from_user_id: int | None, home_id: int, description: str
    ) -> HomeNotification:
        async with self.transaction() as session:
            row = HomeNotificationTable(
                from_user_id=from_user_id, home_id=home_id, description=description
            )
            session.add(row)
            await session.flush()
            return HomeNotification.model_validate(row)

    async def get_home_notification(self, notification_id: int) -> HomeNotification:
        async with self.transaction() as session:
            row = await self._require(
                session, HomeNotificationTable, notification_id, "home notification"
            )
            return HomeNotification.model_validate(row)

    async def list_for_home(self, home_id: int) -> list[HomeNotification]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(HomeNotificationTable)
                .where(HomeNotificationTable.home_id == home_id)
                .order_by(HomeNotificationTable.created_at.desc(), HomeNotificationTable.id.desc())
            )
            return [HomeNotification.model_validate(row) for row in rows]

    async def mark_home_notification_read(self, notification_id: int) -> HomeNotification:
        async with self.transaction() as session:
            row = await self._require(
                session, HomeNotificationTable, notification_id, "home notification"
            )
            row.read = True
            await session.flush()
            return HomeNotification.model_validate(row)


# -----------------------------------------------------------------------------
# Shopping
# -----------------------------------------------------------------------------


class SqlShoppingRepository(SqlRepository, base.ShoppingRepository):
    async def create_category(
        self, home_id: int, name: str, color: str | None = None, icon: str | None = None
    ) -> ShoppingCategory:
        async with self.transaction() as session:
            row = ShoppingCategoryTable(home_id=home_id, name=name, icon=icon, items=[])
            if color:
                row.color = color
            session.add(row)
            await session.flush()
            return ShoppingCategory.model_validate(row)

    async def get_category(self, category_id: int) -> ShoppingCategory:
        async with self.transaction() as session:
            row = await self._require(
                session, ShoppingCategoryTable, category_id, "shopping category"
            )
            return ShoppingCategory.model_validate(row)

    async def list_categories_for_home(self, home_id: int) -> list[ShoppingCategory]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(ShoppingCategoryTable)
                .where(ShoppingCategoryTable.home_id == home_id)
                .order_by(ShoppingCategoryTable.id)
            )
            return [ShoppingCategory.model_validate(row) for row in rows]

    async def edit_category(
        self,
        category_id: int,
        name: str | None = None,
        icon: str | None = None,
        color: str | None = None,
    ) -> ShoppingCategory:
        async with self.transaction() as session:
            row = await self._require(
                session, ShoppingCategoryTable, category_id, "shopping category"
            )
            if name is not None:
                row.name = name
            if icon is not None:
                row.icon = icon
            if color is not None:
                row.color = color
            await session.flush()
            return ShoppingCategory.model_validate(row)

    async def delete_category(self, category_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(
                session, ShoppingCategoryTable, category_id, "shopping category"
            )
            await session.delete(row)

    async def create_item(
        self,
        category_id: int,
        added_by: int,
        name: str,
        image: str | None = None,
        link: str | None = None,
    ) -> ShoppingItem:
        async with self.transaction() as session:
            category = await self._require(
                session, ShoppingCategoryTable, category_id, "shopping category"
            )
            row = ShoppingItemTable(name=name, added_by=added_by, image=image, link=link)
            category.items.append(row)
            await session.flush()
            return ShoppingItem.model_validate(row)

    async def get_item(self, item_id: int) -> ShoppingItem:
        async with self.transaction() as session:
            row = await self._require(session, ShoppingItemTable, item_id, "shopping item")
            return ShoppingItem.model_validate(row)

    async def list_items_for_category(self, category_id: int) -> list[ShoppingItem]:
        async with self.transaction() as session:
            rows = await session.scalars(
                select(ShoppingItemTable)
                .where(ShoppingItemTable.category_id == category_id)
                .order_by(ShoppingItemTable.id)
            )
            return [ShoppingItem.model_validate(row) for row in rows]

    async def delete_item(self, item_id: int) -> None:
        async with self.transaction() as session:
            row = await self._require(session, ShoppingItemTable, item_id, "shopping item")
            await session.delete(row)

    async def mark_bought(self, item_id: int) -> ShoppingItem:
        async with self.transaction() as session:
            row = await self._require(session, ShoppingItemTable, item_id, "shopping item")
            row.is_bought = True
            row.bought_date = _now()
            await session.flush()
            return ShoppingItem.model_validate(row)

    async def edit_item(
        self,
        item_id: int,
        name: Any = UNSET,
        image: Any = UNSET,
        link: Any = UNSET,
        is_bought: Any = UNSET,
        bought_date: Any = UNSET,
    ) -> ShoppingItem:
        async with self.transaction() as session:
            row = await self._require(session, ShoppingItemTable, item_id, "shopping item")
            changes = {
                "name": name,
                "image": image,
                "link": link,
                "is_bought": is_bought,
                "bought_date": bought_date,
            }
            for attr, value in changes.items():
                if value is not UNSET:
                    setattr(row, attr, value)
            await session.flush()
            return ShoppingItem.model_validate(row)
