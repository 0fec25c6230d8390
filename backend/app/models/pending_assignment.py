"""PendingAssignment ORM — intent to assign a task to an email with no account yet.

Invariants:
    - email, task_id, invited_by_id are non-nullable
    - No uniqueness on (email, task_id): inviting twice yields two records
    - Only updated_at ever changes (resend touch); otherwise created then deleted

Design Decisions:
    - task_id has no FK constraint: deleting a task leaves its pending records,
      which resolve to task_missing when the email registers
    - email indexed: registration looks records up by exact email
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class PendingAssignment(Base):
    """Pending assignment (invitation) record."""
    __tablename__ = "pending_assignments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    invited_by_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
