"""Pending Assignment Schemas — response shape for invitations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class PendingAssignmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    task_id: UUID
    invited_by_id: UUID
    created_at: datetime
    updated_at: datetime
