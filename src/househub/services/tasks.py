"""Task and task-assignment service.

Assignment changes touch three cache entries at once: the assignment
itself, the user's assignment list and the user's closest (earliest
open) assignment. All three are dropped together.
"""

from __future__ import annotations

from datetime import datetime, timezone

from househub.cache.aside import CacheAside
from househub.cache.invalidation import InvalidationSet
from househub.cache.keys import CacheKeys
from househub.core.models import Task, TaskAssignment
from househub.events.schemas import Action, DomainEvent, Module
from househub.persistence.base import TaskRepository


class TaskService:
    def __init__(self, tasks: TaskRepository, aside: CacheAside):
        self.tasks = tasks
        self.aside = aside

    # -------------------------------------------------------------------------
    # Tasks
    # -------------------------------------------------------------------------

    async def create_task(
        self,
        home_id: int,
        name: str,
        description: str,
        schedule_type: str,
        room_id: int | None = None,
    ) -> Task:
        return await self.aside.mutate(
            invalidate=InvalidationSet(CacheKeys.tasks_for_home(home_id)),
            write=lambda: self.tasks.create(home_id, name, description, schedule_type, room_id),
            event=lambda task: DomainEvent(Module.TASK, Action.CREATED, task),
        )

    async def get_task(self, task_id: int) -> Task:
        return await self.aside.read_through(
            CacheKeys.task(task_id), Task, lambda: self.tasks.get(task_id)
        )

    async def get_tasks_for_home(self, home_id: int) -> list[Task]:
        return await self.aside.read_through(
            CacheKeys.tasks_for_home(home_id),
            list[Task],
            lambda: self.tasks.list_for_home(home_id),
        )

    async def reassign_room(self, task_id: int, room_id: int) -> Task:
        task = await self.tasks.get(task_id)
        return await self.aside.mutate(
            invalidate=InvalidationSet(
                CacheKeys.task(task_id), CacheKeys.tasks_for_home(task.home_id)
            ),
            write=lambda: self.tasks.reassign_room(task_id, room_id),
            event=lambda updated: DomainEvent(Module.TASK, Action.UPDATED, updated),
        )

    async def delete_task(self, task_id: int) -> None:
        task = await self.tasks.get(task_id)
        assignments = await self.tasks.list_assignments_for_task(task_id)

        keys = InvalidationSet(
            CacheKeys.task(task_id),
            CacheKeys.tasks_for_home(task.home_id),
            [CacheKeys.assignment(a.id) for a in assignments],
            *(CacheKeys.user_assignment_keys(a.user_id) for a in assignments),
        )
        await self.aside.mutate(
            invalidate=keys,
            write=lambda: self.tasks.delete(task_id),
            event=lambda _: DomainEvent(Module.TASK, Action.DELETED, {"id": task_id}),
        )

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    async def assign_user(
        self, task_id: int, user_id: int, date: datetime | None = None
    ) -> TaskAssignment:
        task = await self.tasks.get(task_id)
        assigned_date = date or datetime.now(timezone.utc)
        return await self.aside.mutate(
            invalidate=InvalidationSet(
                CacheKeys.task(task_id),
                CacheKeys.tasks_for_home(task.home_id),
                CacheKeys.user_assignment_keys(user_id),
            ),
            write=lambda: self.tasks.assign_user(task_id, user_id, assigned_date),
            event=lambda assignment: DomainEvent(Module.TASK, Action.ASSIGNED, assignment),
        )

    async def get_assignment(self, assignment_id: int) -> TaskAssignment:
        return await self.aside.read_through(
            CacheKeys.assignment(assignment_id),
            TaskAssignment,
            lambda: self.tasks.get_assignment(assignment_id),
        )

    async def get_assignments_for_user(self, user_id: int) -> list[TaskAssignment]:
        return await self.aside.read_through(
            CacheKeys.assignments_for_user(user_id),
            list[TaskAssignment],
            lambda: self.tasks.list_assignments_for_user(user_id),
        )

    async def get_closest_assignment_for_user(self, user_id: int) -> TaskAssignment | None:
        """Earliest assignment of the user that is not completed, if any.

        "No open assignment" is cached as well.
        """
        return await self.aside.read_through(
            CacheKeys.closest_assignment_for_user(user_id),
            TaskAssignment | None,
            lambda: self.tasks.find_closest_assignment_for_user(user_id),
        )

    def _assignment_keys(self, assignment: TaskAssignment) -> InvalidationSet:
        return InvalidationSet(
            CacheKeys.assignment(assignment.id),
            CacheKeys.user_assignment_keys(assignment.user_id),
        )

    async def mark_assignment_completed(self, assignment_id: int) -> TaskAssignment:
        assignment = await self.tasks.get_assignment(assignment_id)
        return await self.aside.mutate(
            invalidate=self._assignment_keys(assignment),
            write=lambda: self.tasks.mark_completed(assignment_id),
            event=lambda updated: DomainEvent(Module.TASK, Action.COMPLETED, updated),
            repopulate=lambda updated: {CacheKeys.assignment(assignment_id): updated},
        )

    async def mark_assignment_uncompleted(self, assignment_id: int) -> TaskAssignment:
        assignment = await self.tasks.get_assignment(assignment_id)
        return await self.aside.mutate(
            invalidate=self._assignment_keys(assignment),
            write=lambda: self.tasks.mark_uncompleted(assignment_id),
            event=lambda updated: DomainEvent(Module.TASK, Action.UNCOMPLETED, updated),
            repopulate=lambda updated: {CacheKeys.assignment(assignment_id): updated},
        )

    async def delete_assignment(self, assignment_id: int) -> None:
        assignment = await self.tasks.get_assignment(assignment_id)
        await self.aside.mutate(
            invalidate=self._assignment_keys(assignment),
            write=lambda: self.tasks.delete_assignment(assignment_id),
            event=lambda _: DomainEvent(Module.TASK, Action.DELETED, {"id": assignment_id}),
        )
