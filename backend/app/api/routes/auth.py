"""Auth & Users — registration (with pending resolution), login, identity lookup.

Invariants:
    - Registration response includes the pending-resolution summary
    - Partial resolution failures never fail registration (the user exists)
"""

import logging

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_account_service, get_current_user, get_store
from app.infrastructure.directory_store import SqlDirectoryStore
from app.models.user import User
from app.schemas.auth import (
    AuthResponse, LoginRequest, RegisterRequest, RegisterResponse, UserResponse,
)
from app.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.post(
    "/auth/register", response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Create an account and apply any invitations waiting on its email."""
    registration = await accounts.register(body.name, body.email, body.password)
    return RegisterResponse(
        token=registration.token,
        user=UserResponse.model_validate(registration.user),
        pending_resolution=registration.report.to_summary(),
    )


@router.post("/auth/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    user, token = await accounts.login(body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/auth/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: User = Depends(get_current_user),
    store: SqlDirectoryStore = Depends(get_store),
):
    """All accounts, for assignee pickers."""
    return [UserResponse.model_validate(u) for u in await store.list_users()]
