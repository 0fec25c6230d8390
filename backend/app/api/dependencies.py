"""API Dependencies — wiring of store, bus, services and caller identity.

Invariants:
    - The Event Bus comes from app.state (created in lifespan), never a module global
    - One SqlDirectoryStore per request, bound to the request's AsyncSession
    - get_current_user raises AuthenticationError (401) for missing/invalid tokens

Design Decisions:
    - FastAPI Depends chain over a service locator: tests override get_db and
      set app.state.event_bus, everything else follows
"""

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.errors import AuthenticationError
from app.infrastructure.database import get_db
from app.infrastructure.directory_store import SqlDirectoryStore
from app.infrastructure.event_bus import EventBus
from app.infrastructure.security import verify_token
from app.models.user import User
from app.services.account_service import AccountService
from app.services.assignment_resolver import AssignmentResolver
from app.services.notification_emitter import NotificationEmitter
from app.services.task_service import TaskService


def get_event_bus(request: Request) -> EventBus:
    bus = getattr(request.app.state, "event_bus", None)
    if bus is None:
        raise RuntimeError("Event bus not initialized")
    return bus


def get_store(db: AsyncSession = Depends(get_db)) -> SqlDirectoryStore:
    return SqlDirectoryStore(db)


def get_emitter(bus: EventBus = Depends(get_event_bus)) -> NotificationEmitter:
    return NotificationEmitter(bus)


def get_resolver(
    store: SqlDirectoryStore = Depends(get_store),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> AssignmentResolver:
    return AssignmentResolver(store, emitter)


def get_task_service(
    store: SqlDirectoryStore = Depends(get_store),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TaskService:
    return TaskService(store, emitter)


def get_account_service(
    store: SqlDirectoryStore = Depends(get_store),
    resolver: AssignmentResolver = Depends(get_resolver),
    emitter: NotificationEmitter = Depends(get_emitter),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(store, resolver, emitter, settings)


async def get_current_user(
    authorization: str | None = Header(None),
    store: SqlDirectoryStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the bearer token to a User."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError()
    user_id = verify_token(
        authorization[len("Bearer "):], settings.auth_secret,
    )
    if user_id is None:
        raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")
    user = await store.find_user_by_id(user_id)
    if user is None:
        raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")
    return user
