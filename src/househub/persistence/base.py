"""System-of-record ports.

Services depend only on these interfaces. Every write either fully
commits or fully fails, and a read issued after a successful write
observes it. Implementations raise SystemOfRecordError subclasses;
NotFoundError when a single entity lookup finds nothing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from househub.core.models import (
    Bill,
    BillCategory,
    Home,
    HomeNotification,
    Notification,
    Poll,
    Room,
    ShoppingCategory,
    ShoppingItem,
    Task,
    TaskAssignment,
    User,
    Vote,
)

# Sentinel for "leave this field unchanged" in partial updates
UNSET: Any = object()


class UserRepository(ABC):
    @abstractmethod
    async def get(self, user_id: int) -> User: ...

    @abstractmethod
    async def create(self, email: str, name: str, password_hash: str = "") -> User: ...

    @abstractmethod
    async def update_name(self, user_id: int, name: str) -> User: ...

    @abstractmethod
    async def update_avatar(self, user_id: int, avatar: str) -> User: ...


@dataclass(frozen=True)
class HomeDependents:
    """Identities that disappear together with a home."""

    member_ids: list[int] = field(default_factory=list)
    task_ids: list[int] = field(default_factory=list)
    room_ids: list[int] = field(default_factory=list)
    bill_ids: list[int] = field(default_factory=list)
    bill_category_ids: list[int] = field(default_factory=list)
    poll_ids: list[int] = field(default_factory=list)
    shopping_category_ids: list[int] = field(default_factory=list)
    shopping_item_ids: list[int] = field(default_factory=list)
    assignment_ids: list[int] = field(default_factory=list)


class HomeRepository(ABC):
    @abstractmethod
    async def create(self, name: str, owner_id: int, invite_code: str) -> Home: ...

    @abstractmethod
    async def get(self, home_id: int) -> Home: ...

    @abstractmethod
    async def find_by_invite_code(self, code: str) -> Home | None: ...

    @abstractmethod
    async def generate_unique_invite_code(self) -> str: ...

    @abstractmethod
    async def regenerate_code(self, home_id: int, code: str) -> Home: ...

    @abstractmethod
    async def is_member(self, home_id: int, user_id: int) -> bool: ...

    @abstractmethod
    async def add_member(self, home_id: int, user_id: int, role: str) -> Home: ...

    @abstractmethod
    async def delete_member(self, home_id: int, user_id: int) -> Home: ...

    @abstractmethod
    async def find_dependents(self, home_id: int) -> HomeDependents: ...

    @abstractmethod
    async def delete(self, home_id: int) -> None: ...


class TaskRepository(ABC):
    @abstractmethod
    async def create(
        self,
        home_id: int,
        name: str,
        description: str,
        schedule_type: str,
        room_id: int | None = None,
    ) -> Task: ...

    @abstractmethod
    async def get(self, task_id: int) -> Task: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[Task]: ...

    @abstractmethod
    async def list_for_room(self, room_id: int) -> list[Task]: ...

    @abstractmethod
    async def delete(self, task_id: int) -> None: ...

    @abstractmethod
    async def reassign_room(self, task_id: int, room_id: int) -> Task: ...

    @abstractmethod
    async def assign_user(self, task_id: int, user_id: int, date: datetime) -> TaskAssignment: ...

    @abstractmethod
    async def get_assignment(self, assignment_id: int) -> TaskAssignment: ...

    @abstractmethod
    async def list_assignments_for_task(self, task_id: int) -> list[TaskAssignment]: ...

    @abstractmethod
    async def list_assignments_for_user(self, user_id: int) -> list[TaskAssignment]: ...

    @abstractmethod
    async def find_closest_assignment_for_user(self, user_id: int) -> TaskAssignment | None: ...

    @abstractmethod
    async def mark_completed(self, assignment_id: int) -> TaskAssignment: ...

    @abstractmethod
    async def mark_uncompleted(self, assignment_id: int) -> TaskAssignment: ...

    @abstractmethod
    async def delete_assignment(self, assignment_id: int) -> None: ...


class RoomRepository(ABC):
    @abstractmethod
    async def create(self, home_id: int, name: str) -> Room: ...

    @abstractmethod
    async def get(self, room_id: int) -> Room: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[Room]: ...

    @abstractmethod
    async def delete(self, room_id: int) -> None: ...


class BillRepository(ABC):
    @abstractmethod
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
    ) -> Bill: ...

    @abstractmethod
    async def get(self, bill_id: int) -> Bill: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[Bill]: ...

    @abstractmethod
    async def list_for_category(self, category_id: int) -> list[Bill]: ...

    @abstractmethod
    async def delete(self, bill_id: int) -> None: ...

    @abstractmethod
    async def mark_payed(self, bill_id: int) -> Bill:
        """Mark the bill paid.

        Raises:
            BillAlreadyPaidError: If the bill is already paid
        """


class BillCategoryRepository(ABC):
    @abstractmethod
    async def create(self, home_id: int, name: str, color: str | None = None) -> BillCategory: ...

    @abstractmethod
    async def get(self, category_id: int) -> BillCategory: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[BillCategory]: ...

    @abstractmethod
    async def update(
        self, category_id: int, name: str | None = None, color: str | None = None
    ) -> BillCategory: ...

    @abstractmethod
    async def delete(self, category_id: int) -> None: ...


class PollRepository(ABC):
    @abstractmethod
    async def create(
        self,
        home_id: int,
        question: str,
        type: str,
        options: list[str],
        allow_revote: bool = False,
        ends_at: datetime | None = None,
    ) -> Poll: ...

    @abstractmethod
    async def get(self, poll_id: int) -> Poll: ...

    @abstractmethod
    async def get_by_option(self, option_id: int) -> Poll: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[Poll]: ...

    @abstractmethod
    async def close(self, poll_id: int) -> Poll:
        """Close the poll.

        Raises:
            PollClosedError: If the poll is already closed
        """

    @abstractmethod
    async def delete(self, poll_id: int) -> None: ...

    @abstractmethod
    async def vote(self, user_id: int, option_id: int) -> Vote:
        """Record a vote.

        Raises:
            PollClosedError: If the option's poll is closed
        """

    @abstractmethod
    async def unvote(self, user_id: int, poll_id: int) -> None: ...


class NotificationRepository(ABC):
    @abstractmethod
    async def create(
        self, from_user_id: int | None, to_user_id: int, description: str
    ) -> Notification: ...

    @abstractmethod
    async def get(self, notification_id: int) -> Notification: ...

    @abstractmethod
    async def list_for_user(self, user_id: int) -> list[Notification]: ...

    @abstractmethod
    async def mark_read(self, notification_id: int) -> Notification: ...

    @abstractmethod
    async def create_home_notification(
        self, from_user_id: int | None, home_id: int, description: str
    ) -> HomeNotification: ...

    @abstractmethod
    async def get_home_notification(self, notification_id: int) -> HomeNotification: ...

    @abstractmethod
    async def list_for_home(self, home_id: int) -> list[HomeNotification]: ...

    @abstractmethod
    async def mark_home_notification_read(self, notification_id: int) -> HomeNotification: ...


class ShoppingRepository(ABC):
    @abstractmethod
    async def create_category(
        self, home_id: int, name: str, color: str | None = None, icon: str | None = None
    ) -> ShoppingCategory: ...

    @abstractmethod
    async def get_category(self, category_id: int) -> ShoppingCategory: ...

    @abstractmethod
    async def list_categories_for_home(self, home_id: int) -> list[ShoppingCategory]: ...

    @abstractmethod
    async def edit_category(
        self,
        category_id: int,
        name: str | None = None,
        icon: str | None = None,
        color: str | None = None,
    ) -> ShoppingCategory: ...

    @abstractmethod
    async def delete_category(self, category_id: int) -> None: ...

    @abstractmethod
    async def create_item(
        self,
        category_id: int,
        added_by: int,
        name: str,
        image: str | None = None,
        link: str | None = None,
    ) -> ShoppingItem: ...

    @abstractmethod
    async def get_item(self, item_id: int) -> ShoppingItem: ...

    @abstractmethod
    async def list_items_for_category(self, category_id: int) -> list[ShoppingItem]: ...

    @abstractmethod
    async def delete_item(self, item_id: int) -> None: ...

    @abstractmethod
    async def mark_bought(self, item_id: int) -> ShoppingItem: ...

    @abstractmethod
    async def edit_item(
        self,
        item_id: int,
        name: Any = UNSET,
        image: Any = UNSET,
        link: Any = UNSET,
        is_bought: Any = UNSET,
        bought_date: Any = UNSET,
    ) -> ShoppingItem: ...
