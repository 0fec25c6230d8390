"""Account Service — registration and login.

Invariants:
    - Registration commits the user BEFORE resolving pending assignments
    - Pending resolution runs exactly once per registration
    - Login failure never reveals whether the email exists
"""

import logging
from dataclasses import dataclass

from app.config import Settings
from app.core.errors import AuthenticationError, EmailInUseError
from app.core.resolution import ResolutionReport
from app.infrastructure.directory_store import SqlDirectoryStore
from app.infrastructure.security import hash_password, issue_token, verify_password
from app.models.user import User
from app.services.assignment_resolver import AssignmentResolver
from app.services.notification_emitter import NotificationEmitter

logger = logging.getLogger(__name__)


@dataclass
class Registration:
    user: User
    token: str
    report: ResolutionReport


class AccountService:
    """Create accounts and issue tokens."""

    def __init__(
        self,
        store: SqlDirectoryStore,
        resolver: AssignmentResolver,
        emitter: NotificationEmitter,
        settings: Settings,
    ):
        self.store = store
        self.resolver = resolver
        self.emitter = emitter
        self.settings = settings

    async def register(self, name: str, email: str, password: str) -> Registration:
        if await self.store.find_user_by_email(email) is not None:
            raise EmailInUseError(email)
        user = await self.store.create_user(
            email=email,
            name=name,
            password_hash=hash_password(
                password, self.settings.password_hash_iterations,
            ),
        )
        logger.info("User registered", extra={"user_id": str(user.id)})
        self.emitter.user_registered(user)

        report = await self.resolver.resolve_pending_for_new_user(user)
        for outcome in report.failed:
            logger.error(
                f"Pending assignment left unresolved: {outcome.error.message}",
                extra={
                    "user_id": str(user.id),
                    "pending_id": str(outcome.pending_id),
                    "error_code": outcome.error.code,
                },
            )
        return Registration(user=user, token=self._token_for(user), report=report)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self.store.find_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError(
                "Invalid credentials", code="INVALID_CREDENTIALS",
            )
        return user, self._token_for(user)

    def _token_for(self, user: User) -> str:
        return issue_token(
            user.id, self.settings.auth_secret, self.settings.auth_token_ttl_seconds,
        )
