"""Exception hierarchy for HouseHub.

Only SystemOfRecordError and DomainRuleError cross a service boundary.
CacheUnavailableError and EventPublishError are raised by the cache stores
and publishers and are always absorbed by the cache-aside layer.
"""

from __future__ import annotations

from typing import Any


class HouseHubError(Exception):
    """Base class for all HouseHub errors."""


# -----------------------------------------------------------------------------
# System of record
# -----------------------------------------------------------------------------


class SystemOfRecordError(HouseHubError):
    """The authoritative read or write failed."""


class NotFoundError(SystemOfRecordError):
    """Entity does not exist in the system of record."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ConflictError(SystemOfRecordError):
    """The system of record rejected the write."""


class PollClosedError(ConflictError):
    def __init__(self, poll_id: int) -> None:
        self.poll_id = poll_id
        super().__init__(f"poll {poll_id} is closed")


class BillAlreadyPaidError(ConflictError):
    def __init__(self, bill_id: int) -> None:
        self.bill_id = bill_id
        super().__init__(f"bill {bill_id} is already paid")


class AlreadyMemberError(ConflictError):
    def __init__(self, home_id: int, user_id: int) -> None:
        self.home_id = home_id
        self.user_id = user_id
        super().__init__(f"user {user_id} is already a member of home {home_id}")


class InvalidInviteCodeError(ConflictError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__("invalid invite code")


# -----------------------------------------------------------------------------
# Domain rules (checked before any side effect)
# -----------------------------------------------------------------------------


class DomainRuleError(HouseHubError):
    """A business precondition failed."""


class RevoteNotAllowedError(DomainRuleError):
    def __init__(self, poll_id: int) -> None:
        self.poll_id = poll_id
        super().__init__(f"revoting is not allowed for poll {poll_id}")


class CannotRemoveSelfError(DomainRuleError):
    def __init__(self) -> None:
        super().__init__("you cannot remove yourself from home")


class CategoryNotInHomeError(DomainRuleError):
    def __init__(self, category_id: int, home_id: int) -> None:
        self.category_id = category_id
        self.home_id = home_id
        super().__init__(f"category {category_id} does not belong to home {home_id}")


# -----------------------------------------------------------------------------
# Infrastructure (absorbed)
# -----------------------------------------------------------------------------


class CacheUnavailableError(HouseHubError):
    """Cache store could not be reached or returned an error."""


class EventPublishError(HouseHubError):
    """Event could not be handed to the event channel."""
