"""Domain event envelope and taxonomy.

Every successful mutation broadcasts one envelope on the shared updates
channel:

    {"module": "BILL", "action": "MARKED_PAYED", "data": {...}}

``data`` is a JSON snapshot of the affected entity, or a small identifier
mapping such as ``{"id": 42}`` for deletions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import orjson
from pydantic import TypeAdapter


class Module(str, Enum):
    """Functional area an event belongs to."""

    BILL_CATEGORY = "BILL_CATEGORY"
    BILL = "BILL"
    HOME = "HOME"
    NOTIFICATION = "NOTIFICATION"
    HOME_NOTIFICATION = "HOME_NOTIFICATION"
    POLL = "POLL"
    ROOM = "ROOM"
    SHOPPING_CATEGORY = "SHOPPING_CATEGORY"
    SHOPPING_ITEM = "SHOPPING_ITEM"
    TASK = "TASK"
    USER = "USER"


class Action(str, Enum):
    """What happened to the entity."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    MARKED_PAYED = "MARKED_PAYED"
    CLOSED = "CLOSED"
    VOTED = "VOTED"
    UNVOTED = "UNVOTED"
    MEMBER_JOINED = "MEMBER_JOINED"
    MEMBER_LEFT = "MEMBER_LEFT"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"
    UNCOMPLETED = "UNCOMPLETED"
    MARK_READ = "MARK_READ"


_payload_adapter: TypeAdapter[Any] = TypeAdapter(Any)


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Envelope broadcast after a successful write."""

    module: Module
    action: Action
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible dict; pydantic models in data are dumped by alias."""
        return {
            "module": self.module.value,
            "action": self.action.value,
            "data": _payload_adapter.dump_python(self.data, mode="json", by_alias=True),
        }

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_bytes(cls, data: bytes | str) -> "DomainEvent":
        """Deserialize from JSON bytes.

        Raises:
            ValueError: If data is not a valid envelope
        """
        parsed = orjson.loads(data)
        try:
            return cls(
                module=Module(parsed["module"]),
                action=Action(parsed["action"]),
                data=parsed.get("data"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid event envelope: {e}") from e
