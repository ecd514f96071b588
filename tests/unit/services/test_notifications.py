"""Tests for the notification service."""

from __future__ import annotations

import pytest

from househub.core.models import Home, User
from househub.events.publisher import InMemoryPublisher
from househub.events.schemas import Action, Module
from househub.services import Services


class TestNotificationService:
    """User and home notifications."""

    @pytest.mark.asyncio
    async def test_user_notifications(
        self,
        services: Services,
        owner: User,
        member: User,
        publisher: InMemoryPublisher,
    ) -> None:
        assert await services.notifications.get_for_user(member.id) == []

        created = await services.notifications.create(owner.id, member.id, "Your turn to cook")

        notifications = await services.notifications.get_for_user(member.id)
        assert [n.id for n in notifications] == [created.id]
        assert notifications[0].from_user_id == owner.id

        await services.notifications.mark_read(created.id)

        assert (await services.notifications.get_for_user(member.id))[0].read is True
        assert [e.action for e in publisher.events if e.module == Module.NOTIFICATION] == [
            Action.CREATED,
            Action.MARK_READ,
        ]
        assert publisher.events[-1].data == {"id": created.id}

    @pytest.mark.asyncio
    async def test_home_notifications(
        self, services: Services, home: Home, owner: User
    ) -> None:
        assert await services.notifications.get_for_home(home.id) == []

        created = await services.notifications.create_home_notification(
            owner.id, home.id, "Party on Friday"
        )
        assert [n.id for n in await services.notifications.get_for_home(home.id)] == [created.id]

        await services.notifications.mark_home_notification_read(created.id)

        assert (await services.notifications.get_for_home(home.id))[0].read is True

    @pytest.mark.asyncio
    async def test_event_uses_client_field_names(
        self, services: Services, owner: User, member: User, publisher: InMemoryPublisher
    ) -> None:
        await services.notifications.create(owner.id, member.id, "Hi")

        data = publisher.events[-1].to_dict()["data"]

        assert data["from"] == owner.id
        assert data["to"] == member.id
