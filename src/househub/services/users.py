"""User profile service."""

from __future__ import annotations

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import User
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import UserRepository


class UserService:
    def __init__(self, users: UserRepository, aside: CacheAside):
        self.users = users
        self.aside = aside

    async def get_user(self, user_id: int) -> User:
        return await self.aside.read_through(
            CacheKeys.user(user_id), User, lambda: self.users.get(user_id)
        )

    async def update_user(self, user_id: int, name: str) -> User:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.user(user_id)),
            write=lambda: self.users.update_name(user_id, name),
            event=lambda user: DomainEvent(Module.USER, Action.UPDATED, user),
        )

    async def update_avatar(self, user_id: int, avatar: str) -> User:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.user(user_id)),
            write=lambda: self.users.update_avatar(user_id, avatar),
            event=lambda user: DomainEvent(Module.USER, Action.UPDATED, user),
        )
