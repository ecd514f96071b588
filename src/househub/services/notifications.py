"""User and home notification service."""

from __future__ import annotations

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import HomeNotification, Notification
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import NotificationRepository


class NotificationService:
    def __init__(self, notifications: NotificationRepository, aside: CacheAside):
        self.notifications = notifications
        self.aside = aside

    # -------------------------------------------------------------------------
    # User notifications
    # -------------------------------------------------------------------------

    async def create(
        self, from_user_id: int | None, to_user_id: int, description: str
    ) -> Notification:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.user_notifications(to_user_id)),
            write=lambda: self.notifications.create(from_user_id, to_user_id, description),
            event=lambda n: DomainEvent(Module.NOTIFICATION, Action.CREATED, n),
        )

    async def get_for_user(self, user_id: int) -> list[Notification]:
        return await self.aside.read_through(
            CacheKeys.user_notifications(user_id),
            list[Notification],
            lambda: self.notifications.list_for_user(user_id),
        )

    async def mark_read(self, notification_id: int) -> Notification:
        notification = await self.notifications.get(notification_id)
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.user_notifications(notification.to)),
            write=lambda: self.notifications.mark_read(notification_id),
            event=lambda _: DomainEvent(
                Module.NOTIFICATION, Action.MARK_READ, {"id": notification_id}
            ),
        )

    # -------------------------------------------------------------------------
    # Home notifications
    # -------------------------------------------------------------------------

    async def create_home_notification(
        self, from_user_id: int | None, home_id: int, description: str
    ) -> HomeNotification:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home_notifications(home_id)),
            write=lambda: self.notifications.create_home_notification(
                from_user_id, home_id, description
            ),
            event=lambda n: DomainEvent(Module.HOME_NOTIFICATION, Action.CREATED, n),
        )

    async def get_for_home(self, home_id: int) -> list[HomeNotification]:
        return await self.aside.read_through(
            CacheKeys.home_notifications(home_id),
            list[HomeNotification],
            lambda: self.notifications.list_for_home(home_id),
        )

    async def mark_home_notification_read(self, notification_id: int) -> HomeNotification:
        notification = await self.notifications.get_home_notification(notification_id)
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.home_notifications(notification.home_id)),
            write=lambda: self.notifications.mark_home_notification_read(notification_id),
            event=lambda _: DomainEvent(
                Module.HOME_NOTIFICATION, Action.MARK_READ, {"id": notification_id}
            ),
        )
