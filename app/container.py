from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from app.application.security.special_users import SpecialUserRegistry, load_special_users
from app.application.services.auth_service import AuthService
from app.application.services.profile_service import ProfileService
from app.application.services.role_service import RoleService
from app.config import settings
from app.infrastructure.db.repositories.audit_repo import AuditLogRepository
from app.infrastructure.db.repositories.user_repo import UserProfileRepository
from app.infrastructure.db.session import session_scope


@dataclass
class Container:
    user_repo: UserProfileRepository
    audit_repo: AuditLogRepository
    special_users: SpecialUserRegistry

    profile_service: ProfileService
    auth_service: AuthService
    role_service: RoleService


def build_container(
    special_users: SpecialUserRegistry | None = None,
    session_factory: Callable = session_scope,
) -> Container:
    user_repo = UserProfileRepository()
    audit_repo = AuditLogRepository()
    if special_users is None:
        special_users = load_special_users(settings.special_users_file)

    profile_service = ProfileService(
        user_repo=user_repo,
        audit_repo=audit_repo,
        special_users=special_users,
        session_factory=session_factory,
    )
    auth_service = AuthService(
        user_repo=user_repo,
        audit_repo=audit_repo,
        profile_service=profile_service,
        session_factory=session_factory,
    )
    role_service = RoleService(
        user_repo=user_repo,
        audit_repo=audit_repo,
        profile_service=profile_service,
        session_factory=session_factory,
    )

    return Container(
        user_repo=user_repo,
        audit_repo=audit_repo,
        special_users=special_users,
        profile_service=profile_service,
        auth_service=auth_service,
        role_service=role_service,
    )
