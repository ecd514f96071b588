"""Domain services.

Every service reads through the cache and routes mutations through
CacheAside.mutate, so each successful write invalidates the affected
keys and announces itself on the updates channel.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from househub.cache.aside import CacheAside
from househub.persistence.repositories import (
    SqlBillCategoryRepository,
    SqlBillRepository,
    SqlHomeRepository,
    SqlNotificationRepository,
    SqlPollRepository,
    SqlRoomRepository,
    SqlShoppingRepository,
    SqlTaskRepository,
    SqlUserRepository,
)
from househub.services.bills import BillCategoryService, BillService
from househub.services.homes import HomeService
from househub.services.notifications import NotificationService
from househub.services.polls import PollService
from househub.services.rooms import RoomService
from househub.services.shopping import ShoppingService
from househub.services.tasks import TaskService
from househub.services.users import UserService


@dataclass
class Services:
    homes: HomeService
    users: UserService
    tasks: TaskService
    rooms: RoomService
    bills: BillService
    bill_categories: BillCategoryService
    polls: PollService
    notifications: NotificationService
    shopping: ShoppingService


def build_services(
    session_factory: async_sessionmaker[AsyncSession], aside: CacheAside
) -> Services:
    """Wire SQL repositories and the shared cache-aside into services."""
    tasks = SqlTaskRepository(session_factory)
    bills = SqlBillRepository(session_factory)
    return Services(
        homes=HomeService(SqlHomeRepository(session_factory), aside),
        users=UserService(SqlUserRepository(session_factory), aside),
        tasks=TaskService(tasks, aside),
        rooms=RoomService(SqlRoomRepository(session_factory), tasks, aside),
        bills=BillService(bills, aside),
        bill_categories=BillCategoryService(SqlBillCategoryRepository(session_factory), bills, aside),
        polls=PollService(SqlPollRepository(session_factory), aside),
        notifications=NotificationService(SqlNotificationRepository(session_factory), aside),
        shopping=ShoppingService(SqlShoppingRepository(session_factory), aside),
    )


__all__ = [
    "BillCategoryService",
    "BillService",
    "HomeService",
    "NotificationService",
    "PollService",
    "RoomService",
    "Services",
    "ShoppingService",
    "TaskService",
    "UserService",
    "build_services",
]
