"""Task Service — CRUD glue that keeps live subscribers informed.

Invariants:
    - Every mutation publishes after its commit
    - Deleting a task leaves its pending assignments in place
    - Permission checks happen in the routes before these calls
"""

import logging
from uuid import UUID

from app.core.errors import ErrorContext, ResourceNotFoundError
from app.infrastructure.directory_store import SqlDirectoryStore
from app.models.task import Task
from app.services.notification_emitter import NotificationEmitter

logger = logging.getLogger(__name__)


def _not_found(task_id: UUID) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Task", str(task_id), ErrorContext(task_id=str(task_id)),
    )


class TaskService:
    """Create, update, toggle, delete and directly assign tasks."""

    def __init__(self, store: SqlDirectoryStore, emitter: NotificationEmitter):
        self.store = store
        self.emitter = emitter

    async def get(self, task_id: UUID) -> Task:
        task = await self.store.find_task_by_id(task_id)
        if task is None:
            raise _not_found(task_id)
        return task

    async def create(
        self, title: str, description: str | None, created_by_id: UUID,
    ) -> Task:
        task = await self.store.create_task(title, description, created_by_id)
        logger.info("Task created", extra={"task_id": str(task.id)})
        self.emitter.task_created(task)
        return task

    async def update(self, task_id: UUID, **fields: object) -> Task:
        """Apply exactly the given fields; a None description clears it."""
        task = await self.store.update_task_fields(task_id, **fields)
        if task is None:
            raise _not_found(task_id)
        self.emitter.task_updated(task)
        return task

    async def toggle_complete(self, task_id: UUID) -> Task:
        current = await self.get(task_id)
        return await self.update(task_id, completed=not current.completed)

    async def delete(self, task_id: UUID) -> None:
        if not await self.store.delete_task(task_id):
            raise _not_found(task_id)
        logger.info("Task deleted", extra={"task_id": str(task_id)})
        self.emitter.task_deleted(task_id)

    async def assign_to_user(self, task_id: UUID, user_id: UUID | None) -> Task:
        """Direct assignment by id; None unassigns."""
        if user_id is not None and await self.store.find_user_by_id(user_id) is None:
            raise ResourceNotFoundError("User", str(user_id))
        task = await self.store.update_task_assignee(task_id, user_id)
        if task is None:
            raise _not_found(task_id)
        self.emitter.task_assigned(task)
        return task
