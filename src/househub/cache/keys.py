"""Cache key schema for HouseHub.

Key format: {prefix}:{kind}:{id}[:{relation}]

Where:
- prefix: "househub" (namespace shared with other Redis users)
- kind: entity kind the id belongs to ("home", "task", "bill", ...)
- id: non-negative integer in canonical decimal form
- relation: optional collection hanging off the entity ("tasks", "items", ...)

No component contains ":", so every key splits back into exactly one
(kind, id, relation) triple and two different triples never share a key.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CacheKind(str, Enum):
    """Entity kinds that own cache entries."""

    HOME = "home"
    USER = "user"
    TASK = "task"
    ASSIGNMENT = "assignment"
    ROOM = "room"
    BILL = "bill"
    BILL_CATEGORY = "bill_category"
    POLL = "poll"
    SHOPPING_CATEGORY = "shopping_category"
    SHOPPING_ITEM = "shopping_item"


class CacheRelation(str, Enum):
    """Collections cached under an owning entity."""

    TASKS = "tasks"
    ROOMS = "rooms"
    BILLS = "bills"
    BILL_CATEGORIES = "bill_categories"
    POLLS = "polls"
    SHOPPING_CATEGORIES = "shopping_categories"
    NOTIFICATIONS = "notifications"
    ASSIGNMENTS = "assignments"
    CLOSEST_ASSIGNMENT = "closest_assignment"
    ITEMS = "items"


@dataclass(frozen=True, slots=True)
class CacheKeyParts:
    kind: CacheKind
    id: int
    relation: CacheRelation | None = None


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "househub"

    @classmethod
    def build(
        cls,
        kind: CacheKind,
        entity_id: int,
        relation: CacheRelation | None = None,
    ) -> str:
        """Derive the key for an entity or one of its relations.

        Raises:
            TypeError: If entity_id is not an int (bool is rejected too)
            ValueError: If entity_id is negative
        """
        kind = CacheKind(kind)
        if isinstance(entity_id, bool) or not isinstance(entity_id, int):
            raise TypeError(f"entity id must be int, got {type(entity_id).__name__}")
        if entity_id < 0:
            raise ValueError(f"entity id must be non-negative, got {entity_id}")

        key = f"{cls.PREFIX}:{kind.value}:{entity_id}"
        if relation is not None:
            key = f"{key}:{CacheRelation(relation).value}"
        return key

    @classmethod
    def parse_key(cls, key: str) -> CacheKeyParts | None:
        """Parse a cache key into its components.

        Returns None if the key doesn't match the expected format.
        """
        parts = key.split(":")
        if len(parts) not in (3, 4) or parts[0] != cls.PREFIX:
            return None

        raw_id = parts[2]
        # Canonical decimal only, so "07" and "+7" never alias "7"
        if not raw_id.isascii() or not raw_id.isdigit() or str(int(raw_id)) != raw_id:
            return None

        try:
            kind = CacheKind(parts[1])
            relation = CacheRelation(parts[3]) if len(parts) == 4 else None
        except ValueError:
            return None

        return CacheKeyParts(kind=kind, id=int(raw_id), relation=relation)

    # -------------------------------------------------------------------------
    # Entity keys
    # -------------------------------------------------------------------------

    @classmethod
    def home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id)

    @classmethod
    def user(cls, user_id: int) -> str:
        return cls.build(CacheKind.USER, user_id)

    @classmethod
    def task(cls, task_id: int) -> str:
        return cls.build(CacheKind.TASK, task_id)

    @classmethod
    def assignment(cls, assignment_id: int) -> str:
        return cls.build(CacheKind.ASSIGNMENT, assignment_id)

    @classmethod
    def room(cls, room_id: int) -> str:
        return cls.build(CacheKind.ROOM, room_id)

    @classmethod
    def bill(cls, bill_id: int) -> str:
        return cls.build(CacheKind.BILL, bill_id)

    @classmethod
    def bill_category(cls, category_id: int) -> str:
        return cls.build(CacheKind.BILL_CATEGORY, category_id)

    @classmethod
    def poll(cls, poll_id: int) -> str:
        return cls.build(CacheKind.POLL, poll_id)

    @classmethod
    def shopping_category(cls, category_id: int) -> str:
        return cls.build(CacheKind.SHOPPING_CATEGORY, category_id)

    @classmethod
    def shopping_item(cls, item_id: int) -> str:
        return cls.build(CacheKind.SHOPPING_ITEM, item_id)

    # -------------------------------------------------------------------------
    # Relation keys
    # -------------------------------------------------------------------------

    @classmethod
    def tasks_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.TASKS)

    @classmethod
    def rooms_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.ROOMS)

    @classmethod
    def bills_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.BILLS)

    @classmethod
    def bill_categories_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.BILL_CATEGORIES)

    @classmethod
    def polls_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.POLLS)

    @classmethod
    def shopping_categories_for_home(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.SHOPPING_CATEGORIES)

    @classmethod
    def home_notifications(cls, home_id: int) -> str:
        return cls.build(CacheKind.HOME, home_id, CacheRelation.NOTIFICATIONS)

    @classmethod
    def items_for_shopping_category(cls, category_id: int) -> str:
        return cls.build(CacheKind.SHOPPING_CATEGORY, category_id, CacheRelation.ITEMS)

    @classmethod
    def user_notifications(cls, user_id: int) -> str:
        return cls.build(CacheKind.USER, user_id, CacheRelation.NOTIFICATIONS)

    @classmethod
    def assignments_for_user(cls, user_id: int) -> str:
        return cls.build(CacheKind.USER, user_id, CacheRelation.ASSIGNMENTS)

    @classmethod
    def closest_assignment_for_user(cls, user_id: int) -> str:
        """Key for the earliest not-yet-completed assignment of a user."""
        return cls.build(CacheKind.USER, user_id, CacheRelation.CLOSEST_ASSIGNMENT)

    @classmethod
    def home_lists(cls, home_id: int) -> list[str]:
        """Every collection key scoped to a home."""
        return [
            cls.tasks_for_home(home_id),
            cls.rooms_for_home(home_id),
            cls.bills_for_home(home_id),
            cls.bill_categories_for_home(home_id),
            cls.polls_for_home(home_id),
            cls.shopping_categories_for_home(home_id),
            cls.home_notifications(home_id),
        ]

    @classmethod
    def user_assignment_keys(cls, user_id: int) -> list[str]:
        """Keys that change whenever any assignment of the user changes."""
        return [cls.assignments_for_user(user_id), cls.closest_assignment_for_user(user_id)]
