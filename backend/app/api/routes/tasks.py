"""Task Routes — CRUD, direct assignment, and assignment by email.

Invariants:
    - Every mutation checks rights here, before the service/resolver runs
    - assign-by-email returns the task unchanged when only an invitation was recorded
    - Routes never contain business logic (delegate to services)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import (
    get_current_user, get_resolver, get_store, get_task_service,
)
from app.core.errors import ErrorContext, ForbiddenError
from app.core.permissions import can_manage_task, can_toggle_task
from app.infrastructure.directory_store import SqlDirectoryStore
from app.models.task import Task
from app.models.user import User
from app.schemas.task import (
    AssignByEmailRequest, AssignRequest, TaskCreate, TaskResponse, TaskUpdate,
)
from app.services.assignment_resolver import AssignmentResolver
from app.services.task_service import TaskService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


async def get_manageable_task(
    task_id: UUID, user: User, tasks: TaskService,
) -> Task:
    """Load a task and require creator-or-admin rights. Exported for reuse."""
    task = await tasks.get(task_id)
    if not can_manage_task(user.id, user.role, task.created_by_id):
        raise ForbiddenError(
            "manage this task",
            ErrorContext(user_id=str(user.id), task_id=str(task_id)),
        )
    return task


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    mine: bool = Query(False),
    completed: bool | None = Query(None),
    user: User = Depends(get_current_user),
    store: SqlDirectoryStore = Depends(get_store),
):
    """List tasks, newest first. mine=true limits to created-by or assigned-to me."""
    tasks = await store.list_tasks(
        user_id=user.id if mine else None, completed=completed,
    )
    return [TaskResponse.model_validate(t) for t in tasks]


@router.post(
    "", response_model=TaskResponse, status_code=status.HTTP_201_CREATED,
)
async def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    task = await tasks.create(body.title, body.description, user.id)
    return TaskResponse.model_validate(task)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    _: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    return TaskResponse.model_validate(await tasks.get(task_id))


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    await get_manageable_task(task_id, user, tasks)
    task = await tasks.update(task_id, **body.changes())
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    task = await tasks.get(task_id)
    if not can_toggle_task(
        user.id, user.role, task.created_by_id, task.assigned_to_id,
    ):
        raise ForbiddenError(
            "complete this task",
            ErrorContext(user_id=str(user.id), task_id=str(task_id)),
        )
    return TaskResponse.model_validate(await tasks.toggle_complete(task_id))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """Delete a task. Its pending assignments are left in place."""
    await get_manageable_task(task_id, user, tasks)
    await tasks.delete(task_id)


@router.post("/{task_id}/assign", response_model=TaskResponse)
async def assign_task(
    task_id: UUID,
    body: AssignRequest,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    await get_manageable_task(task_id, user, tasks)
    task = await tasks.assign_to_user(task_id, body.user_id)
    return TaskResponse.model_validate(task)


@router.post("/{task_id}/assign-by-email", response_model=TaskResponse)
async def assign_task_by_email(
    task_id: UUID,
    body: AssignByEmailRequest,
    user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
    resolver: AssignmentResolver = Depends(get_resolver),
):
    """Assign to the account owning `email`, or record a pending invitation."""
    await get_manageable_task(task_id, user, tasks)
    task = await resolver.assign_by_email(task_id, body.email, user.id)
    return TaskResponse.model_validate(task)
