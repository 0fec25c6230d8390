"""Permission Checks — pure ownership/role rules for task and invitation mutations.

Invariants:
    - ADMIN may do everything checked here
    - Rights derive from user ids and role only, never from email matching
    - Functions are pure: callers raise ForbiddenError on False

Design Decisions:
    - Checks live at the API boundary; the resolver takes "authorization
      already verified" as a precondition
"""

from uuid import UUID

from app.core.domain_types import Role


def is_admin(role: str) -> bool:
    return role == Role.ADMIN.value


def can_manage_task(user_id: UUID, role: str, created_by_id: UUID) -> bool:
    """Update, delete and (re)assign a task."""
    return is_admin(role) or user_id == created_by_id


def can_toggle_task(
    user_id: UUID, role: str, created_by_id: UUID, assigned_to_id: UUID | None,
) -> bool:
    """Flip completion — the assignee may do it as well as the creator."""
    return can_manage_task(user_id, role, created_by_id) or user_id == assigned_to_id


def can_manage_pending(user_id: UUID, role: str, invited_by_id: UUID) -> bool:
    """Cancel or resend an invitation."""
    return is_admin(role) or user_id == invited_by_id
