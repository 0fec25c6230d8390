"""Directory Store — SQLAlchemy implementation of the DirectoryStore protocol.

Invariants:
    - Every mutating method is its own commit boundary; no lock spans two calls
    - Every returned entity is detached from the session: a later rollback can
      never expire a record a caller is still holding
    - Reads bypass the identity map (populate_existing) so decisions use
      current rows, not what this session saw earlier
    - SQLAlchemy failures roll back and surface as DatabaseError; a duplicate
      email on create_user surfaces as EmailInUseError

Design Decisions:
    - update_task_assignee is one row-scoped read-modify-write
      (SELECT ... FOR UPDATE on Postgres) to narrow the register/invite race
    - Deletes use bulk DELETE by primary key and report rowcount, so deleting
      an already-removed record returns False instead of raising
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, TypeVar
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DatabaseError, EmailInUseError
from app.models.pending_assignment import PendingAssignment
from app.models.task import Task
from app.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SqlDirectoryStore:
    """Durable users, tasks and pending assignments over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncGenerator[None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Store operation {name} failed: {e}")
            raise DatabaseError("Directory store unavailable", name)

    def _detach(self, entity: T) -> T:
        self.db.expunge(entity)
        return entity

    def _detach_all(self, entities: list[T]) -> list[T]:
        for entity in entities:
            self.db.expunge(entity)
        return entities

    async def _fetch_all(self, query) -> list:
        result = await self.db.execute(
            query.execution_options(populate_existing=True),
        )
        return self._detach_all(list(result.scalars().all()))

    async def _fetch_one(self, query):
        result = await self.db.execute(
            query.execution_options(populate_existing=True),
        )
        entity = result.scalar_one_or_none()
        return self._detach(entity) if entity is not None else None

    # ─── Users ──────────────────────────────────────────────────────

    async def find_user_by_email(self, email: str) -> User | None:
        async with self._operation("find_user_by_email"):
            return await self._fetch_one(select(User).where(User.email == email))

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        async with self._operation("find_user_by_id"):
            return await self._fetch_one(select(User).where(User.id == user_id))

    async def list_users(self) -> list[User]:
        async with self._operation("list_users"):
            return await self._fetch_all(select(User).order_by(User.name))

    async def create_user(
        self, email: str, name: str, password_hash: str, role: str = "MEMBER",
    ) -> User:
        user = User(
            email=email, name=name, password_hash=password_hash, role=role,
        )
        try:
            async with self._operation("create_user"):
                self.db.add(user)
                await self.db.commit()
        except DatabaseError as e:
            if isinstance(e.__context__, IntegrityError):
                raise EmailInUseError(email) from e
            raise
        return self._detach(user)

    # ─── Tasks ──────────────────────────────────────────────────────

    async def find_task_by_id(self, task_id: UUID) -> Task | None:
        async with self._operation("find_task_by_id"):
            return await self._fetch_one(select(Task).where(Task.id == task_id))

    async def list_tasks(
        self,
        user_id: UUID | None = None,
        completed: bool | None = None,
    ) -> list[Task]:
        """Newest first; user_id limits to tasks the user created or holds."""
        query = select(Task).order_by(Task.created_at.desc())
        if user_id is not None:
            query = query.where(
                or_(Task.created_by_id == user_id, Task.assigned_to_id == user_id),
            )
        if completed is not None:
            query = query.where(Task.completed == completed)
        async with self._operation("list_tasks"):
            return await self._fetch_all(query)

    async def create_task(
        self, title: str, description: str | None, created_by_id: UUID,
    ) -> Task:
        task = Task(
            title=title, description=description, created_by_id=created_by_id,
        )
        async with self._operation("create_task"):
            self.db.add(task)
            await self.db.commit()
        return self._detach(task)

    async def update_task_fields(self, task_id: UUID, **fields: object) -> Task | None:
        """Apply title/description/completed changes. None if the task is gone."""
        async with self._operation("update_task_fields"):
            task = await self.db.get(
                Task, task_id, with_for_update=True, populate_existing=True,
            )
            if task is None:
                await self.db.commit()
                return None
            for name, value in fields.items():
                setattr(task, name, value)
            task.updated_at = _now()
            await self.db.commit()
        return self._detach(task)

    async def update_task_assignee(
        self, task_id: UUID, user_id: UUID | None,
    ) -> Task | None:
        async with self._operation("update_task_assignee"):
            task = await self.db.get(
                Task, task_id, with_for_update=True, populate_existing=True,
            )
            if task is None:
                await self.db.commit()
                return None
            task.assigned_to_id = user_id
            task.updated_at = _now()
            await self.db.commit()
        return self._detach(task)

    async def delete_task(self, task_id: UUID) -> bool:
        async with self._operation("delete_task"):
            result = await self.db.execute(delete(Task).where(Task.id == task_id))
            await self.db.commit()
        return result.rowcount == 1

    # ─── Pending assignments ────────────────────────────────────────

    async def find_pending_by_email(self, email: str) -> list[PendingAssignment]:
        async with self._operation("find_pending_by_email"):
            return await self._fetch_all(
                select(PendingAssignment)
                .where(PendingAssignment.email == email)
                .order_by(PendingAssignment.created_at),
            )

    async def find_pending_by_id(self, pending_id: UUID) -> PendingAssignment | None:
        async with self._operation("find_pending_by_id"):
            return await self._fetch_one(
                select(PendingAssignment).where(PendingAssignment.id == pending_id),
            )

    async def list_pending(
        self, invited_by_id: UUID | None = None,
    ) -> list[PendingAssignment]:
        query = select(PendingAssignment).order_by(PendingAssignment.created_at.desc())
        if invited_by_id is not None:
            query = query.where(PendingAssignment.invited_by_id == invited_by_id)
        async with self._operation("list_pending"):
            return await self._fetch_all(query)

    async def create_pending_assignment(
        self, email: str, task_id: UUID, invited_by_id: UUID,
    ) -> PendingAssignment:
        pending = PendingAssignment(
            email=email, task_id=task_id, invited_by_id=invited_by_id,
        )
        async with self._operation("create_pending_assignment"):
            self.db.add(pending)
            await self.db.commit()
        return self._detach(pending)

    async def delete_pending_assignment(self, pending_id: UUID) -> bool:
        async with self._operation("delete_pending_assignment"):
            result = await self.db.execute(
                delete(PendingAssignment).where(PendingAssignment.id == pending_id),
            )
            await self.db.commit()
        return result.rowcount == 1

    async def touch_pending_assignment(
        self, pending_id: UUID,
    ) -> PendingAssignment | None:
        async with self._operation("touch_pending_assignment"):
            pending = await self.db.get(
                PendingAssignment, pending_id, populate_existing=True,
            )
            if pending is None:
                await self.db.commit()
                return None
            pending.updated_at = _now()
            await self.db.commit()
        return self._detach(pending)
