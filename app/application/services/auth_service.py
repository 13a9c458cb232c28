from __future__ import annotations

import logging
from collections.abc import Callable

from app.application.dto.auth_dto import LoginRequest, SessionContext
from app.application.services.profile_service import ProfileService
from app.domain.errors import AuthenticationError
from app.infrastructure.db.repositories.audit_repo import AuditLogRepository
from app.infrastructure.db.repositories.user_repo import UserProfileRepository
from app.infrastructure.db.session import session_scope
from app.infrastructure.security.password_hash import hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        user_repo: UserProfileRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        profile_service: ProfileService | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.user_repo = user_repo or UserProfileRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.profile_service = profile_service or ProfileService(
            user_repo=self.user_repo,
            audit_repo=self.audit_repo,
            session_factory=session_factory,
        )
        self.session_factory = session_factory

    def login(self, request: LoginRequest) -> SessionContext:
        with self.session_factory() as session:
            user = self.user_repo.get_by_email(session, request.email)
            if not user or not user.active:
                logger.warning("Login rejected for %s: unknown or deactivated account", request.email)
                raise AuthenticationError("Invalid email or the account is deactivated")

            if not verify_password(request.password, str(user.password_hash)):
                logger.warning("Login rejected for %s: wrong password", request.email)
                raise AuthenticationError("Invalid email or password")

            if needs_rehash(str(user.password_hash)):
                user.password_hash = hash_password(request.password, scheme="argon2")

            self.audit_repo.add_event(
                session,
                user_id=user.id,
                entity_type="user",
                entity_id=user.id,
                action="login",
                payload={"email": user.email},
            )
            profile = self.profile_service.to_user_profile(user)
            logger.info("User %s logged in as %s", profile.email, profile.role)
            return SessionContext(user=profile)
