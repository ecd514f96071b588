"""Room service.

Deleting a room detaches its tasks, so the home's task list and every
task that pointed at the room are dropped along with the room.
"""

from __future__ import annotations

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import Room
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import RoomRepository, TaskRepository


class RoomService:
    def __init__(self, rooms: RoomRepository, tasks: TaskRepository, aside: CacheAside):
        self.rooms = rooms
        self.tasks = tasks
        self.aside = aside

    async def create_room(self, home_id: int, name: str) -> Room:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.rooms_for_home(home_id)),
            write=lambda: self.rooms.create(home_id, name),
            event=lambda room: DomainEvent(Module.ROOM, Action.CREATED, room),
        )

    async def get_room(self, room_id: int) -> Room:
        return await self.aside.read_through(
            CacheKeys.room(room_id), Room, lambda: self.rooms.get(room_id)
        )

    async def get_rooms_for_home(self, home_id: int) -> list[Room]:
        return await self.aside.read_through(
            CacheKeys.rooms_for_home(home_id),
            list[Room],
            lambda: self.rooms.list_for_home(home_id),
        )

    async def delete_room(self, room_id: int) -> Room:
        room = await self.rooms.get(room_id)
        tasks = await self.tasks.list_for_room(room_id)

        keys = InvalidationSet(
            CacheKeys.room(room_id),
            CacheKeys.rooms_for_home(room.home_id),
            CacheKeys.tasks_for_home(room.home_id),
            [CacheKeys.task(task.id) for task in tasks],
        )

        async def write() -> Room:
            await self.rooms.delete(room_id)
            return room

        return await self.aside.mutate(
            invalidate=keys,
            write=write,
            event=lambda deleted: DomainEvent(Module.ROOM, Action.DELETED, deleted),
        )
