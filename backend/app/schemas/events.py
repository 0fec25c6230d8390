"""Live Event Schemas — one typed payload per topic, discriminated by `type`.

Invariants:
    - Every event class pins its Topic; `type` equals the topic wire name
    - Payloads carry response models (plain data), never ORM instances
    - to_sse_event() is the only serialization used on the wire

Design Decisions:
    - Pydantic discriminated union over dict payloads: subscribers and tests
      get checked shapes, and LiveEvent parses any frame back into its class
"""

from typing import Annotated, ClassVar, Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.domain_types import PendingRemovalReason, Topic
from app.schemas.auth import UserResponse
from app.schemas.pending import PendingAssignmentResponse
from app.schemas.task import TaskResponse


class _BaseEvent(BaseModel):
    topic: ClassVar[Topic]

    def to_sse_event(self) -> dict:
        """Convert to the SSE `{type, data}` envelope."""
        data = self.model_dump(mode="json", exclude={"type"})
        return {"type": self.type, "data": data}


class TaskCreatedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.TASK_CREATED
    type: Literal["taskCreated"] = "taskCreated"
    task: TaskResponse


class TaskUpdatedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.TASK_UPDATED
    type: Literal["taskUpdated"] = "taskUpdated"
    task: TaskResponse


class TaskDeletedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.TASK_DELETED
    type: Literal["taskDeleted"] = "taskDeleted"
    task_id: UUID


class PendingCreatedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.PENDING_CREATED
    type: Literal["pendingAssignmentCreated"] = "pendingAssignmentCreated"
    pending: PendingAssignmentResponse


class PendingDeletedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.PENDING_DELETED
    type: Literal["pendingAssignmentDeleted"] = "pendingAssignmentDeleted"
    id: UUID
    email: str
    task_id: UUID
    reason: PendingRemovalReason


class UserCreatedEvent(_BaseEvent):
    topic: ClassVar[Topic] = Topic.USER_CREATED
    type: Literal["userCreated"] = "userCreated"
    user: UserResponse


LiveEvent = Annotated[
    Union[
        TaskCreatedEvent,
        TaskUpdatedEvent,
        TaskDeletedEvent,
        PendingCreatedEvent,
        PendingDeletedEvent,
        UserCreatedEvent,
    ],
    Field(discriminator="type"),
]
