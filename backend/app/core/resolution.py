"""Resolution Report — per-record results of resolving pending assignments.

Invariants:
    - One PendingOutcome per pending record examined, in processing order
    - FAILED outcomes always carry an error; RESOLVED never does
    - A report with zero outcomes means nothing matched (idempotent re-run)

Design Decisions:
    - Batch-of-results over raised aggregate: callers assert on partial failure
      without losing the records that did resolve
"""

from dataclasses import dataclass, field
from uuid import UUID

from app.core.domain_types import OutcomeStatus
from app.core.errors import TaskDeskError


@dataclass(frozen=True)
class PendingOutcome:
    """Result of resolving a single pending assignment."""
    pending_id: UUID
    task_id: UUID
    status: OutcomeStatus
    error: TaskDeskError | None = None

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.RESOLVED

    def to_dict(self) -> dict:
        return {
            "pending_id": str(self.pending_id),
            "task_id": str(self.task_id),
            "status": self.status.value,
            "error": self.error.to_outcome() if self.error else None,
        }


@dataclass
class ResolutionReport:
    """All outcomes for one registered user."""
    user_id: UUID
    email: str
    outcomes: list[PendingOutcome] = field(default_factory=list)

    @property
    def touched(self) -> int:
        return len(self.outcomes)

    @property
    def resolved(self) -> list[PendingOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.RESOLVED]

    @property
    def task_missing(self) -> list[PendingOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.TASK_MISSING]

    @property
    def failed(self) -> list[PendingOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def errors(self) -> list[TaskDeskError]:
        return [o.error for o in self.outcomes if o.error is not None]

    def to_summary(self) -> dict:
        """Compact summary for API responses and logs."""
        return {
            "resolved": len(self.resolved),
            "task_missing": len(self.task_missing),
            "failed": len(self.failed),
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
