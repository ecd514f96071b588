"""Home and membership service.

Membership changes are cached on the home entry only. Deleting a home
takes every home-scoped list and every dependent entity with it.
"""

from __future__ import annotations

import logging

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import Home, HomeRole
from househub.errors import AlreadyMemberError, CannotRemoveSelfError, InvalidInviteCodeError
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import HomeDependents, HomeRepository

logger = logging.getLogger(__name__)


class HomeService:
    def __init__(self, homes: HomeRepository, aside: CacheAside):
        self.homes = homes
        self.aside = aside

    async def create_home(self, name: str, owner_id: int) -> Home:
        """Create a home with the owner as its admin."""
        code = await self.homes.generate_unique_invite_code()
        return await self.aside.mutate(
            invalidate=InvalidationSet(),
            write=lambda: self.homes.create(name, owner_id, code),
            event=lambda home: DomainEvent(Module.HOME, Action.CREATED, home),
        )

    async def get_home(self, home_id: int) -> Home:
        return await self.aside.read_through(
            CacheKeys.home(home_id), Home, lambda: self.homes.get(home_id)
        )

    async def join_home_by_code(self, code: str, user_id: int) -> Home:
        """Join the home owning the invite code.

        Raises:
            InvalidInviteCodeError: If no home has this code
            AlreadyMemberError: If the user already belongs to the home
        """
        home = await self.homes.find_by_invite_code(code)
        if home is None:
            raise InvalidInviteCodeError(code)
        if await self.homes.is_member(home.id, user_id):
            raise AlreadyMemberError(home.id, user_id)

        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home(home.id)),
            write=lambda: self.homes.add_member(home.id, user_id, HomeRole.MEMBER.value),
            event=lambda _: DomainEvent(
                Module.HOME, Action.MEMBER_JOINED, {"home_id": home.id, "user_id": user_id}
            ),
        )

    async def leave_home(self, home_id: int, user_id: int) -> Home:
        """Raises NotFoundError if the user is not a member."""
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home(home_id)),
            write=lambda: self.homes.delete_member(home_id, user_id),
            event=lambda _: DomainEvent(
                Module.HOME, Action.MEMBER_LEFT, {"home_id": home_id, "user_id": user_id}
            ),
        )

    async def remove_member(self, home_id: int, user_id: int, current_user_id: int) -> Home:
        """Remove another member from the home.

        Raises:
            CannotRemoveSelfError: If a user tries to remove themselves
            NotFoundError: If the user is not a member; nothing is published
        """
        if user_id == current_user_id:
            raise CannotRemoveSelfError()

        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home(home_id)),
            write=lambda: self.homes.delete_member(home_id, user_id),
            event=lambda _: DomainEvent(
                Module.HOME, Action.MEMBER_REMOVED, {"home_id": home_id, "user_id": user_id}
            ),
        )

    async def regenerate_invite_code(self, home_id: int) -> Home:
        code = await self.homes.generate_unique_invite_code()
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home(home_id)),
            write=lambda: self.homes.regenerate_code(home_id, code),
            event=lambda home: DomainEvent(Module.HOME, Action.UPDATED, home),
        )

    async def delete_home(self, home_id: int) -> None:
        dependents = await self.homes.find_dependents(home_id)
        keys = self.dependent_keys(home_id, dependents)
        logger.info(f"Deleting home {home_id}, invalidating {len(keys)} cache keys")
        await self.aside.mutate(
            invalidate=keys,
            write=lambda: self.homes.delete(home_id),
            event=lambda _: DomainEvent(Module.HOME, Action.DELETED, {"id": home_id}),
        )

    @staticmethod
    def dependent_keys(home_id: int, dependents: HomeDependents) -> InvalidationSet:
        """Every key that can hold data belonging to the home."""
        return InvalidationSet(
            CacheKeys.home(home_id),
            CacheKeys.home_lists(home_id),
            [CacheKeys.task(i) for i in dependents.task_ids],
            [CacheKeys.room(i) for i in dependents.room_ids],
            [CacheKeys.bill(i) for i in dependents.bill_ids],
            [CacheKeys.bill_category(i) for i in dependents.bill_category_ids],
            [CacheKeys.poll(i) for i in dependents.poll_ids],
            [CacheKeys.shopping_category(i) for i in dependents.shopping_category_ids],
            [CacheKeys.items_for_shopping_category(i) for i in dependents.shopping_category_ids],
            [CacheKeys.shopping_item(i) for i in dependents.shopping_item_ids],
            [CacheKeys.assignment(i) for i in dependents.assignment_ids],
            *(CacheKeys.user_assignment_keys(i) for i in dependents.member_ids),
        )
