from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta
from typing import Final, cast

from sqlalchemy.orm import Session

from app.application.dto.auth_dto import PermissionChangeRequest, UserProfile, permission_list
from app.application.security.guards import GUARDS
from app.application.security.role_matrix import special_permission_matches
from app.application.services.profile_service import ProfileService
from app.domain.constants import UserRole
from app.domain.errors import AccessDeniedError
from app.infrastructure.db.models_sqlalchemy import UserProfileRow, utc_now
from app.infrastructure.db.repositories.audit_repo import AuditLogRepository
from app.infrastructure.db.repositories.user_repo import UserProfileRepository
from app.infrastructure.db.session import session_scope

logger = logging.getLogger(__name__)

ROLE_CHANGES_PER_DAY: Final = 3


class RoleService:
    """Admin operations on roles, activation and per-user permissions."""

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

    def change_role(self, actor: UserProfile | None, user_id: str, role: str) -> UserProfile:
        admin = self._require_admin(actor, "change_role", user_id)
        with self._target(user_id) as (session, row):
            reason = self.validate_role_change(session, row, role)
            if reason:
                raise ValueError(f"Invalid role change: {reason}")
            old_role = row.role
            self.user_repo.update_fields(session, row, updated_by=admin.id, role=role)
            self.audit_repo.add_event(
                session,
                user_id=admin.id,
                entity_type="user",
                entity_id=user_id,
                action="role_change",
                payload={"old_values": {"role": old_role}, "new_values": {"role": role}},
            )
            logger.info("Role of %s changed from %s to %s by %s", row.email, old_role, role, admin.email)
            return self.profile_service.to_user_profile(row)

    def validate_role_change(self, session: Session, row: UserProfileRow, role: str) -> str | None:
        """Return why ``row`` may not move to ``role``, or None when it may."""
        if role not in UserRole.values():
            return f"unknown role {role!r}"
        if row.role == role:
            return "the user already has this role"
        if row.role == UserRole.ADMIN and row.active:
            admins = self.user_repo.count_by_role(session, active_only=True).get(UserRole.ADMIN.value, 0)
            if admins <= 1:
                return "cannot demote the last active admin"
        recent = self.audit_repo.count_events(
            session,
            entity_type="user",
            entity_id=row.id,
            action="role_change",
            since=utc_now() - timedelta(hours=24),
        )
        if recent >= ROLE_CHANGES_PER_DAY:
            return "too many role changes in the last 24 hours"
        return None

    def set_active(self, actor: UserProfile | None, user_id: str, active: bool) -> UserProfile:
        admin = self._require_admin(actor, "set_active", user_id)
        with self._target(user_id) as (session, row):
            if not active and row.role == UserRole.ADMIN and row.active:
                admins = self.user_repo.count_by_role(session, active_only=True).get(UserRole.ADMIN.value, 0)
                if admins <= 1:
                    raise ValueError("Cannot deactivate the last active admin")
            self.user_repo.update_fields(session, row, updated_by=admin.id, active=active)
            self.audit_repo.add_event(
                session,
                user_id=admin.id,
                entity_type="user",
                entity_id=user_id,
                action="set_active",
                payload={"active": active},
            )
            return self.profile_service.to_user_profile(row)

    def manage_permissions(self, actor: UserProfile | None, request: PermissionChangeRequest) -> list[str]:
        admin = self._require_admin(actor, "manage_permissions", request.user_id)
        with self._target(request.user_id) as (session, row):
            settings = dict(row.custom_settings or {})
            current = list(permission_list(settings.get("special_permissions")))
            if request.operation == "add":
                updated = list(dict.fromkeys([*current, *request.permissions]))
            elif request.operation == "remove":
                updated = [item for item in current if item not in request.permissions]
            else:
                updated = list(dict.fromkeys(request.permissions))
            settings["special_permissions"] = updated
            self.user_repo.update_fields(session, row, updated_by=admin.id, custom_settings=settings)
            self.audit_repo.add_event(
                session,
                user_id=admin.id,
                entity_type="user",
                entity_id=request.user_id,
                action="permission_change",
                payload={
                    "operation": request.operation,
                    "old_values": {"special_permissions": current},
                    "new_values": {"special_permissions": updated},
                },
            )
            logger.info("Permissions of %s: %s %s", row.email, request.operation, request.permissions)
            return updated

    def get_custom_permissions(self, user_id: str) -> list[str]:
        with self.session_factory() as session:
            row = self.user_repo.get_by_id(session, user_id)
            if row is None:
                return []
            return list(permission_list((row.custom_settings or {}).get("special_permissions")))

    def has_custom_permission(self, user_id: str, resource: str, action: str) -> bool:
        return special_permission_matches(self.get_custom_permissions(user_id), resource, action)

    def list_users(self, actor: UserProfile | None, query: str | None = None) -> list[UserProfile]:
        self._require_admin(actor, "list_users", None)
        with self.session_factory() as session:
            rows = self.user_repo.list_users(session, query=query)
            return [self.profile_service.to_user_profile(row) for row in rows]

    def count_by_role(self) -> dict[str, int]:
        with self.session_factory() as session:
            counts = self.user_repo.count_by_role(session)
        return {role: counts.get(role, 0) for role in UserRole.values()}

    @contextmanager
    def _target(self, user_id: str) -> Iterator[tuple[Session, UserProfileRow]]:
        with self.session_factory() as session:
            row = self.user_repo.get_by_id(session, user_id)
            if row is None:
                raise ValueError("User profile not found")
            yield session, row

    def _require_admin(self, actor: UserProfile | None, operation: str, target_id: str | None) -> UserProfile:
        try:
            GUARDS["manage_users"].check(actor)
        except AccessDeniedError as exc:
            denied = cast(UserProfile, actor)
            with self.session_factory() as session:
                self.audit_repo.add_event(
                    session,
                    user_id=denied.id,
                    entity_type="user",
                    entity_id=target_id or denied.id,
                    action="access_denied",
                    payload={"operation": operation, "code": exc.code},
                )
            raise
        return cast(UserProfile, actor)
