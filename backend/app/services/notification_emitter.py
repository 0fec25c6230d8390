"""Notification Emitter — maps durable state transitions onto Event Bus topics.

Invariants:
    - Called only after the corresponding store write committed
    - One transition -> exactly one publish on one topic
    - Publish failures are logged and swallowed; they never fail the operation
    - Payloads are built from response schemas, never ORM instances

Design Decisions:
    - No branching beyond the mapping itself: which transition happened is
      decided by the resolver/services, the emitter only translates
"""

import logging
from uuid import UUID

from app.core.domain_types import PendingRemovalReason
from app.core.repository_protocols import PendingAssignmentLike, TaskLike, UserLike
from app.infrastructure.event_bus import EventBus
from app.schemas.auth import UserResponse
from app.schemas.events import (
    LiveEvent,
    PendingCreatedEvent,
    PendingDeletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskUpdatedEvent,
    UserCreatedEvent,
)
from app.schemas.pending import PendingAssignmentResponse
from app.schemas.task import TaskResponse

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """Translate resolver/CRUD transitions into live events."""

    def __init__(self, bus: EventBus):
        self.bus = bus

    def task_assigned(self, task: TaskLike) -> int:
        return self._publish(
            TaskUpdatedEvent(task=TaskResponse.model_validate(task)),
        )

    def task_updated(self, task: TaskLike) -> int:
        return self._publish(
            TaskUpdatedEvent(task=TaskResponse.model_validate(task)),
        )

    def task_created(self, task: TaskLike) -> int:
        return self._publish(
            TaskCreatedEvent(task=TaskResponse.model_validate(task)),
        )

    def task_deleted(self, task_id: UUID) -> int:
        return self._publish(TaskDeletedEvent(task_id=task_id))

    def pending_created(self, pending: PendingAssignmentLike) -> int:
        return self._publish(
            PendingCreatedEvent(
                pending=PendingAssignmentResponse.model_validate(pending),
            ),
        )

    def pending_resolved(self, pending: PendingAssignmentLike) -> int:
        return self._pending_removed(pending, PendingRemovalReason.RESOLVED)

    def pending_cancelled(self, pending: PendingAssignmentLike) -> int:
        return self._pending_removed(pending, PendingRemovalReason.CANCELLED)

    def user_registered(self, user: UserLike) -> int:
        return self._publish(
            UserCreatedEvent(user=UserResponse.model_validate(user)),
        )

    def _pending_removed(
        self, pending: PendingAssignmentLike, reason: PendingRemovalReason,
    ) -> int:
        return self._publish(
            PendingDeletedEvent(
                id=pending.id, email=pending.email,
                task_id=pending.task_id, reason=reason,
            ),
        )

    def _publish(self, event: LiveEvent) -> int:
        try:
            return self.bus.publish(event)
        except Exception as e:
            logger.warning(
                f"Publish of {event.type} failed: {e}",
                extra={"topic": event.type},
                exc_info=True,
            )
            return 0
