"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, TaskId, PendingAssignmentId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - Topic values are the wire names live clients subscribe to

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
TaskId = NewType("TaskId", UUID)
PendingAssignmentId = NewType("PendingAssignmentId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """User roles — maps to DB `role` column."""
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class Topic(str, Enum):
    """Live event topics exposed to subscribers."""
    TASK_CREATED = "taskCreated"
    TASK_UPDATED = "taskUpdated"
    TASK_DELETED = "taskDeleted"
    PENDING_CREATED = "pendingAssignmentCreated"
    PENDING_DELETED = "pendingAssignmentDeleted"
    USER_CREATED = "userCreated"


class PendingRemovalReason(str, Enum):
    """Why a pending assignment left the store."""
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class OutcomeStatus(str, Enum):
    """Per-record result of resolving pending assignments for a new user."""
    RESOLVED = "resolved"
    TASK_MISSING = "task_missing"
    FAILED = "failed"
