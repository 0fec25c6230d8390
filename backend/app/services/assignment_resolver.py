"""Assignment Resolver — deferred assignment of tasks to emails without accounts.

Invariants:
    - Every decision re-reads the store; nothing is cached between calls
    - The durable write commits BEFORE its event is published
    - assign_by_email returns the task unchanged when it only created an invitation
    - An invitation created after its email registered is resolved before returning
    - resolve_pending_for_new_user handles each record independently: a failed
      task update keeps that record and the batch continues
    - A missing task is reported as task_missing; its orphan record is still removed
    - Callers verify authorization first; nothing here derives rights from email

Design Decisions:
    - ResolutionReport over raised aggregate: callers decide whether to log,
      retry, or alert per record
    - Exact email match everywhere (no case folding, no trimming)
"""

import logging
from uuid import UUID

from app.core.domain_types import OutcomeStatus
from app.core.errors import (
    DatabaseError, ErrorContext, ResourceNotFoundError,
)
from app.core.repository_protocols import (
    DirectoryStore, PendingAssignmentLike, TaskLike, UserLike,
)
from app.core.resolution import PendingOutcome, ResolutionReport
from app.services.notification_emitter import NotificationEmitter

logger = logging.getLogger(__name__)


class AssignmentResolver:
    """Pending-assignment lifecycle: invite, resolve, cancel, resend."""

    def __init__(self, store: DirectoryStore, emitter: NotificationEmitter):
        self.store = store
        self.emitter = emitter

    async def assign_by_email(
        self, task_id: UUID, email: str, requesting_user_id: UUID,
    ) -> TaskLike:
        """Bind the task to the user owning `email`, or record an invitation."""
        task = await self.store.find_task_by_id(task_id)
        if task is None:
            raise ResourceNotFoundError(
                "Task", str(task_id), ErrorContext(task_id=str(task_id)),
            )

        user = await self.store.find_user_by_email(email)
        if user is not None:
            updated = await self.store.update_task_assignee(task_id, user.id)
            if updated is None:
                raise ResourceNotFoundError(
                    "Task", str(task_id), ErrorContext(task_id=str(task_id)),
                )
            logger.info(
                "Task assigned directly by email",
                extra={"task_id": str(task_id), "user_id": str(user.id)},
            )
            self.emitter.task_assigned(updated)
            return updated

        pending = await self.store.create_pending_assignment(
            email, task_id, requesting_user_id,
        )
        logger.info(
            "Pending assignment created",
            extra={"task_id": str(task_id), "pending_id": str(pending.id)},
        )
        self.emitter.pending_created(pending)

        # An account registered after our lookup has already run its
        # resolution and will never see this record.
        registered = await self.store.find_user_by_email(email)
        if registered is None:
            return task
        outcome = await self._resolve_one(pending, registered)
        if not outcome.ok:
            logger.warning(
                "Invitation raced a registration and stays unresolved",
                extra={"task_id": str(task_id), "pending_id": str(pending.id)},
            )
            return task
        logger.info(
            "Invitation resolved at once for a concurrent registration",
            extra={"task_id": str(task_id), "user_id": str(registered.id)},
        )
        return await self.store.find_task_by_id(task_id) or task

    async def resolve_pending_for_new_user(self, user: UserLike) -> ResolutionReport:
        """Apply every invitation waiting on user.email. Safe to call again."""
        report = ResolutionReport(user_id=user.id, email=user.email)
        records = await self.store.find_pending_by_email(user.email)
        for record in records:
            report.outcomes.append(await self._resolve_one(record, user))

        if report.touched:
            logger.info(
                f"Resolved pending assignments for new user "
                f"({len(report.resolved)}/{report.touched})",
                extra={
                    "user_id": str(user.id),
                    "resolved": len(report.resolved),
                    "failed": len(report.failed),
                },
            )
        return report

    async def _resolve_one(
        self, record: PendingAssignmentLike, user: UserLike,
    ) -> PendingOutcome:
        pending_id, task_id = record.id, record.task_id
        context = ErrorContext(
            user_id=str(user.id), task_id=str(task_id), pending_id=str(pending_id),
        )

        try:
            task = await self.store.update_task_assignee(task_id, user.id)
        except DatabaseError as e:
            e.context = context
            logger.warning(
                f"Task update failed; pending assignment kept: {e.message}",
                extra={"pending_id": str(pending_id), "task_id": str(task_id)},
            )
            return PendingOutcome(pending_id, task_id, OutcomeStatus.FAILED, e)

        try:
            deleted = await self.store.delete_pending_assignment(pending_id)
        except DatabaseError as e:
            e.context = context
            logger.warning(
                f"Pending assignment delete failed: {e.message}",
                extra={"pending_id": str(pending_id), "task_id": str(task_id)},
            )
            if task is not None:
                self.emitter.task_assigned(task)
            return PendingOutcome(pending_id, task_id, OutcomeStatus.FAILED, e)

        if task is not None:
            self.emitter.task_assigned(task)
        if deleted:
            self.emitter.pending_resolved(record)

        if task is None:
            logger.warning(
                "Pending assignment referenced a deleted task",
                extra={"pending_id": str(pending_id), "task_id": str(task_id)},
            )
            return PendingOutcome(
                pending_id, task_id, OutcomeStatus.TASK_MISSING,
                ResourceNotFoundError("Task", str(task_id), context),
            )
        return PendingOutcome(pending_id, task_id, OutcomeStatus.RESOLVED)

    async def cancel_pending(
        self, pending_id: UUID, requesting_user_id: UUID,
    ) -> PendingAssignmentLike:
        """Delete an invitation. Rights already checked by the caller."""
        record = await self._get_pending_or_raise(pending_id)
        deleted = await self.store.delete_pending_assignment(pending_id)
        if not deleted:
            raise ResourceNotFoundError(
                "PendingAssignment", str(pending_id),
                ErrorContext(pending_id=str(pending_id)),
            )
        logger.info(
            "Pending assignment cancelled",
            extra={"pending_id": str(pending_id), "user_id": str(requesting_user_id)},
        )
        self.emitter.pending_cancelled(record)
        return record

    async def touch_pending(self, pending_id: UUID) -> PendingAssignmentLike:
        """Resend marker: bump updated_at."""
        record = await self.store.touch_pending_assignment(pending_id)
        if record is None:
            raise ResourceNotFoundError(
                "PendingAssignment", str(pending_id),
                ErrorContext(pending_id=str(pending_id)),
            )
        return record

    async def _get_pending_or_raise(self, pending_id: UUID) -> PendingAssignmentLike:
        record = await self.store.find_pending_by_id(pending_id)
        if record is None:
            raise ResourceNotFoundError(
                "PendingAssignment", str(pending_id),
                ErrorContext(pending_id=str(pending_id)),
            )
        return record
