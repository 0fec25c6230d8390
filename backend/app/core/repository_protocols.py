"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, so the SQL store and the test
      fake satisfy the same contract without a shared base class
    - Entity "Like" protocols avoid coupling services to the ORM models while
      giving mypy real type information (unlike Any)
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID


class UserLike(Protocol):
    """Structural contract for User records."""
    id: UUID
    email: str
    name: str
    role: str
    created_at: datetime


class TaskLike(Protocol):
    """Structural contract for Task records."""
    id: UUID
    title: str
    description: str | None
    assigned_to_id: UUID | None
    created_by_id: UUID
    completed: bool
    created_at: datetime
    updated_at: datetime


class PendingAssignmentLike(Protocol):
    """Structural contract for PendingAssignment records."""
    id: UUID
    email: str
    task_id: UUID
    invited_by_id: UUID
    created_at: datetime
    updated_at: datetime


class DirectoryStore(Protocol):
    """Contract for durable users/tasks/pending assignments — implemented by shell.

    Every mutating call is its own commit boundary. Store failures surface as
    DatabaseError.
    """
    async def find_user_by_email(self, email: str) -> UserLike | None: ...
    async def find_task_by_id(self, task_id: UUID) -> TaskLike | None: ...
    async def update_task_assignee(
        self, task_id: UUID, user_id: UUID | None,
    ) -> TaskLike | None: ...
    async def find_pending_by_email(
        self, email: str,
    ) -> list[PendingAssignmentLike]: ...
    async def find_pending_by_id(
        self, pending_id: UUID,
    ) -> PendingAssignmentLike | None: ...
    async def create_pending_assignment(
        self, email: str, task_id: UUID, invited_by_id: UUID,
    ) -> PendingAssignmentLike: ...
    async def delete_pending_assignment(self, pending_id: UUID) -> bool: ...
    async def touch_pending_assignment(
        self, pending_id: UUID,
    ) -> PendingAssignmentLike | None: ...
