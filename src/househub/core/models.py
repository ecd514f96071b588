"""Domain models.

Pydantic models are the unit of exchange between the system of record,
the cache and the updates channel. Field names match the JSON names
clients already consume.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DomainModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class HomeRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    COMPLETED = "completed"


class PollStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


# -----------------------------------------------------------------------------
# Users and homes
# -----------------------------------------------------------------------------


class User(DomainModel):
    id: int
    email: str
    name: str
    avatar: str = ""
    created_at: datetime


class HomeMembership(DomainModel):
    id: int
    home_id: int
    user_id: int
    role: HomeRole = HomeRole.MEMBER
    joined_at: datetime


class Home(DomainModel):
    id: int
    name: str
    invite_code: str
    created_at: datetime
    memberships: list[HomeMembership] = Field(default_factory=list)

    def member_ids(self) -> list[int]:
        return [m.user_id for m in self.memberships]


# -----------------------------------------------------------------------------
# Tasks and rooms
# -----------------------------------------------------------------------------


class Room(DomainModel):
    id: int
    home_id: int
    name: str
    created_at: datetime


class Task(DomainModel):
    id: int
    home_id: int
    room_id: int | None = None
    name: str
    description: str = ""
    schedule_type: str
    created_at: datetime


class TaskAssignment(DomainModel):
    id: int
    task_id: int
    home_id: int
    user_id: int
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    assigned_date: datetime
    complete_date: datetime | None = None


# -----------------------------------------------------------------------------
# Bills
# -----------------------------------------------------------------------------


class BillCategory(DomainModel):
    id: int
    home_id: int
    name: str
    color: str = "#FBEB9E"
    created_at: datetime


class Bill(DomainModel):
    id: int
    home_id: int
    bill_category_id: int | None = None
    type: str = ""
    is_payed: bool = False
    payment_date: datetime | None = None
    total_amount: float
    period_start: datetime
    period_end: datetime
    uploaded_by: int
    ocr_data: Any = None
    created_at: datetime


# -----------------------------------------------------------------------------
# Polls
# -----------------------------------------------------------------------------


class Vote(DomainModel):
    id: int
    user_id: int
    option_id: int


class PollOption(DomainModel):
    id: int
    poll_id: int
    title: str
    votes: list[Vote] = Field(default_factory=list)


class Poll(DomainModel):
    id: int
    home_id: int
    question: str
    type: str = "single"
    status: PollStatus = PollStatus.OPEN
    allow_revote: bool = False
    ends_at: datetime | None = None
    created_at: datetime
    options: list[PollOption] = Field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.status == PollStatus.CLOSED


# -----------------------------------------------------------------------------
# Notifications
# -----------------------------------------------------------------------------


class Notification(DomainModel):
    id: int
    from_user_id: int | None = Field(default=None, alias="from")
    to: int
    description: str
    read: bool = False
    created_at: datetime


class HomeNotification(DomainModel):
    id: int
    from_user_id: int | None = Field(default=None, alias="from")
    home_id: int
    description: str
    read: bool = False
    created_at: datetime


# -----------------------------------------------------------------------------
# Shopping
# -----------------------------------------------------------------------------


class ShoppingItem(DomainModel):
    id: int
    category_id: int
    name: str
    added_by: int
    is_bought: bool = False
    image: str | None = None
    link: str | None = None
    bought_date: datetime | None = None
    created_at: datetime


class ShoppingCategory(DomainModel):
    id: int
    home_id: int
    name: str
    icon: str | None = None
    color: str = "#D8D4FC"
    created_at: datetime
    items: list[ShoppingItem] = Field(default_factory=list)
