"""Pending Assignment Routes — list, resend and cancel invitations.

Invariants:
    - Admins see every invitation; members see the ones they sent
    - Only the inviter or an admin may resend or cancel
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_current_user, get_resolver, get_store
from app.core.errors import ErrorContext, ForbiddenError, ResourceNotFoundError
from app.core.permissions import can_manage_pending, is_admin
from app.infrastructure.directory_store import SqlDirectoryStore
from app.models.pending_assignment import PendingAssignment
from app.models.user import User
from app.schemas.pending import PendingAssignmentResponse
from app.services.assignment_resolver import AssignmentResolver

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/pending-assignments", tags=["pending-assignments"],
)


async def _get_own_pending_or_raise(
    pending_id: UUID, user: User, store: SqlDirectoryStore,
) -> PendingAssignment:
    pending = await store.find_pending_by_id(pending_id)
    context = ErrorContext(user_id=str(user.id), pending_id=str(pending_id))
    if pending is None:
        raise ResourceNotFoundError("PendingAssignment", str(pending_id), context)
    if not can_manage_pending(user.id, user.role, pending.invited_by_id):
        raise ForbiddenError("manage this invitation", context)
    return pending


@router.get("", response_model=list[PendingAssignmentResponse])
async def list_pending_assignments(
    user: User = Depends(get_current_user),
    store: SqlDirectoryStore = Depends(get_store),
):
    records = await store.list_pending(
        invited_by_id=None if is_admin(user.role) else user.id,
    )
    return [PendingAssignmentResponse.model_validate(r) for r in records]


@router.post("/{pending_id}/resend", response_model=PendingAssignmentResponse)
async def resend_pending_assignment(
    pending_id: UUID,
    user: User = Depends(get_current_user),
    store: SqlDirectoryStore = Depends(get_store),
    resolver: AssignmentResolver = Depends(get_resolver),
):
    await _get_own_pending_or_raise(pending_id, user, store)
    record = await resolver.touch_pending(pending_id)
    return PendingAssignmentResponse.model_validate(record)


@router.delete("/{pending_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_pending_assignment(
    pending_id: UUID,
    user: User = Depends(get_current_user),
    store: SqlDirectoryStore = Depends(get_store),
    resolver: AssignmentResolver = Depends(get_resolver),
):
    await _get_own_pending_or_raise(pending_id, user, store)
    await resolver.cancel_pending(pending_id, user.id)
