from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.application.dto.auth_dto import CreateUserRequest, ProfileUpdateRequest, UserProfile
from app.application.security.special_users import SpecialUserRegistry
from app.domain.constants import UserRole
from app.domain.rules.common_rules import PROFILE_RULES
from app.domain.rules.validation import FormValidationResult, ValidationError, validate_field
from app.infrastructure.db.models_sqlalchemy import UserProfileRow
from app.infrastructure.db.repositories.audit_repo import AuditLogRepository
from app.infrastructure.db.repositories.user_repo import UserProfileRepository
from app.infrastructure.db.session import session_scope
from app.infrastructure.security.password_hash import hash_password

logger = logging.getLogger(__name__)

# Profile fields kept inside ``custom_settings`` rather than in their own column.
SETTINGS_FIELDS = ("display_name", "title", "department")
AUDITED_FIELDS = ("name", "designation", *SETTINGS_FIELDS)


@dataclass(frozen=True)
class ProfileUpdateResult:
    success: bool
    user: UserProfile | None = None
    errors: tuple[ValidationError, ...] = ()
    message: str = ""


@dataclass(frozen=True)
class ProfileHistoryEntry:
    event_ts: datetime
    actor_id: str | None
    action: str
    payload: dict[str, Any] = field(default_factory=dict)


def name_from_email(email: str) -> str:
    return email.split("@", 1)[0]


def row_to_data(row: UserProfileRow) -> dict[str, Any]:
    return {
        "id": row.id,
        "email": row.email,
        "role": row.role,
        "name": row.name,
        "designation": row.designation,
        "active": bool(row.active),
        "custom_settings": dict(row.custom_settings or {}),
    }


def _profile_values(row: UserProfileRow) -> dict[str, Any]:
    settings = row.custom_settings or {}
    values: dict[str, Any] = {"name": row.name, "designation": row.designation}
    for key in SETTINGS_FIELDS:
        values[key] = settings.get(key)
    return values


class ProfileService:
    def __init__(
        self,
        user_repo: UserProfileRepository | None = None,
        audit_repo: AuditLogRepository | None = None,
        special_users: SpecialUserRegistry | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.user_repo = user_repo or UserProfileRepository()
        self.audit_repo = audit_repo or AuditLogRepository()
        self.special_users = special_users or SpecialUserRegistry()
        self.session_factory = session_factory

    def create_profile(
        self,
        request: CreateUserRequest,
        actor_id: str | None = None,
        role: str = UserRole.VIEWER.value,
    ) -> UserProfile:
        """Persist a new profile, with any special-user configuration applied.

        Without a name in the request the email prefix is used. A special
        configuration overrides both name and role.
        """
        email = request.email.strip().lower()
        with self.session_factory() as session:
            if self.user_repo.get_by_email(session, email):
                raise ValueError("A user with this email already exists")

            data = self.special_users.apply_configuration(
                email,
                {
                    "email": email,
                    "name": request.name or name_from_email(email),
                    "designation": None,
                    "role": role,
                    "custom_settings": {},
                },
            )
            row = self.user_repo.create(
                session,
                email=email,
                password_hash=hash_password(request.password, scheme="argon2"),
                role=data["role"],
                name=data["name"],
                designation=data["designation"],
                custom_settings=data["custom_settings"],
                updated_by=actor_id,
            )
            self.audit_repo.add_event(
                session,
                user_id=actor_id,
                entity_type="user",
                entity_id=row.id,
                action="create_user",
                payload={"email": email, "role": row.role},
            )
            logger.info("Created profile %s with role %s", email, row.role)
            return self.to_user_profile(row)

    def to_user_profile(self, row: UserProfileRow) -> UserProfile:
        data = self.special_users.apply_configuration(row.email, row_to_data(row))
        return UserProfile.model_validate(data)

    def hydrate(self, user_id: str) -> UserProfile | None:
        with self.session_factory() as session:
            row = self.user_repo.get_by_id(session, user_id)
            if row is None:
                return None
            return self.to_user_profile(row)

    def validate_profile_update(self, request: ProfileUpdateRequest) -> FormValidationResult:
        errors: list[ValidationError] = []
        for name, value in request.provided().items():
            message = validate_field(value, PROFILE_RULES[name])
            if message is not None:
                errors.append(ValidationError(name, message))
        return FormValidationResult(not errors, tuple(errors))

    def update_profile(
        self,
        user_id: str,
        request: ProfileUpdateRequest,
        actor_id: str | None = None,
    ) -> ProfileUpdateResult:
        validation = self.validate_profile_update(request)
        if not validation.is_valid:
            return ProfileUpdateResult(False, errors=validation.errors, message="Profile validation failed")

        with self.session_factory() as session:
            row = self.user_repo.get_by_id(session, user_id)
            if row is None:
                return ProfileUpdateResult(False, message="User profile not found")

            old_values = _profile_values(row)
            updates = self._column_updates(row, request.provided())
            self.user_repo.update_fields(session, row, updated_by=actor_id or user_id, **updates)
            new_values = _profile_values(row)

            changed = [key for key in AUDITED_FIELDS if old_values[key] != new_values[key]]
            self.audit_repo.add_event(
                session,
                user_id=actor_id or user_id,
                entity_type="user",
                entity_id=user_id,
                action="update_profile",
                payload={
                    "changed": changed,
                    "old_values": {key: old_values[key] for key in changed},
                    "new_values": {key: new_values[key] for key in changed},
                },
            )
            logger.info("Updated profile %s (%s)", user_id, ", ".join(changed) or "no changes")
            return ProfileUpdateResult(True, user=self.to_user_profile(row), message="Profile updated successfully")

    def get_profile_history(self, user_id: str, limit: int = 50) -> list[ProfileHistoryEntry]:
        with self.session_factory() as session:
            events = self.audit_repo.list_for_entity(session, entity_type="user", entity_id=user_id, limit=limit)
            return [
                ProfileHistoryEntry(
                    event_ts=event.event_ts,
                    actor_id=event.user_id,
                    action=event.action,
                    payload=json.loads(event.payload_json) if event.payload_json else {},
                )
                for event in events
            ]

    @staticmethod
    def _column_updates(row: UserProfileRow, provided: dict[str, Any]) -> dict[str, Any]:
        updates: dict[str, Any] = {}
        if "name" in provided and provided["name"] is not None:
            updates["name"] = provided["name"].strip()
        if "designation" in provided:
            updates["designation"] = (provided["designation"] or "").strip() or None

        if any(key in provided for key in SETTINGS_FIELDS):
            settings = dict(row.custom_settings or {})
            for key in SETTINGS_FIELDS:
                if key not in provided:
                    continue
                value = (provided[key] or "").strip()
                if value:
                    settings[key] = value
                else:
                    settings.pop(key, None)
            updates["custom_settings"] = settings
        return updates
