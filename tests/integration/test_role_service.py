from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.application.dto.auth_dto import CreateUserRequest, PermissionChangeRequest
from app.application.security import has_permission
from app.application.services.profile_service import ProfileService
from app.application.services.role_service import RoleService
from app.domain.errors import AccessDeniedError, AuthenticationError


@pytest.fixture
def services(session_factory):
    profiles = ProfileService(session_factory=session_factory)
    roles = RoleService(profile_service=profiles, session_factory=session_factory)
    admin = profiles.create_profile(CreateUserRequest(email="admin@gsr.in", password="StrongPass1"), role="admin")
    clerk = profiles.create_profile(CreateUserRequest(email="clerk@gsr.in", password="StrongPass1"))
    return profiles, roles, admin, clerk


def test_admin_changes_role_and_it_is_audited(services) -> None:
    profiles, roles, admin, clerk = services

    updated = roles.change_role(admin, clerk.id, "finance")

    assert updated.role == "finance"
    assert profiles.hydrate(clerk.id).role == "finance"  # type: ignore[union-attr]
    latest = profiles.get_profile_history(clerk.id)[0]
    assert latest.action == "role_change"
    assert latest.actor_id == admin.id
    assert latest.payload == {"old_values": {"role": "viewer"}, "new_values": {"role": "finance"}}


def test_non_admin_is_denied_and_denial_is_recorded(services) -> None:
    profiles, roles, _admin, clerk = services

    with pytest.raises(AccessDeniedError) as exc_info:
        roles.change_role(clerk, clerk.id, "admin")

    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"
    assert profiles.hydrate(clerk.id).role == "viewer"  # type: ignore[union-attr]
    latest = profiles.get_profile_history(clerk.id)[0]
    assert latest.action == "access_denied"
    assert latest.payload == {"operation": "change_role", "code": "INSUFFICIENT_PERMISSIONS"}


def test_missing_actor_must_log_in(services) -> None:
    _, roles, _admin, clerk = services

    with pytest.raises(AuthenticationError):
        roles.set_active(None, clerk.id, False)


@pytest.mark.parametrize(
    ("role", "reason"),
    [("viewer", "already has this role"), ("owner", "unknown role")],
)
def test_invalid_role_changes(services, role: str, reason: str) -> None:
    _, roles, admin, clerk = services

    with pytest.raises(ValueError, match=reason):
        roles.change_role(admin, clerk.id, role)


def test_last_admin_cannot_be_demoted_or_deactivated(services) -> None:
    _, roles, admin, _clerk = services

    with pytest.raises(ValueError, match="last active admin"):
        roles.change_role(admin, admin.id, "viewer")
    with pytest.raises(ValueError, match="last active admin"):
        roles.set_active(admin, admin.id, False)


def test_role_changes_are_rate_limited(services) -> None:
    _, roles, admin, clerk = services
    for role in ("finance", "production", "sales_manager"):
        roles.change_role(admin, clerk.id, role)

    with pytest.raises(ValueError, match="too many role changes"):
        roles.change_role(admin, clerk.id, "viewer")


def test_change_role_of_missing_user(services) -> None:
    _, roles, admin, _clerk = services

    with pytest.raises(ValueError, match="not found"):
        roles.change_role(admin, "missing", "finance")


def test_deactivation_removes_all_permissions(services) -> None:
    _, roles, admin, clerk = services

    updated = roles.set_active(admin, clerk.id, False)

    assert updated.active is False
    assert has_permission(updated, "order", "read") is False


def test_manage_permissions_add_remove_replace(services) -> None:
    _, roles, admin, clerk = services

    added = roles.manage_permissions(
        admin,
        PermissionChangeRequest(user_id=clerk.id, operation="add", permissions=["order:create", "batch:*", "order:create"]),
    )
    assert added == ["order:create", "batch:*"]
    assert roles.has_custom_permission(clerk.id, "batch", "delete") is True
    assert roles.has_custom_permission(clerk.id, "invoice", "read") is False

    removed = roles.manage_permissions(
        admin, PermissionChangeRequest(user_id=clerk.id, operation="remove", permissions=["order:create"])
    )
    assert removed == ["batch:*"]

    replaced = roles.manage_permissions(
        admin, PermissionChangeRequest(user_id=clerk.id, operation="replace", permissions=["*:read", "*:read"])
    )
    assert replaced == ["*:read"]
    assert roles.get_custom_permissions(clerk.id) == ["*:read"]
    assert roles.get_custom_permissions("missing") == []


def test_malformed_stored_permissions_are_treated_as_empty(services, session_factory) -> None:
    profiles, roles, admin, clerk = services
    with session_factory() as session:
        row = profiles.user_repo.get_by_id(session, clerk.id)
        profiles.user_repo.update_fields(
            session, row, updated_by=admin.id, custom_settings={"special_permissions": 42}
        )

    assert roles.get_custom_permissions(clerk.id) == []
    assert roles.has_custom_permission(clerk.id, "order", "read") is False
    added = roles.manage_permissions(
        admin, PermissionChangeRequest(user_id=clerk.id, operation="add", permissions=["order:create"])
    )
    assert added == ["order:create"]


def test_permission_format_is_checked() -> None:
    with pytest.raises(ValidationError):
        PermissionChangeRequest(user_id="u", operation="add", permissions=["orders"])
    with pytest.raises(ValidationError):
        PermissionChangeRequest(user_id="u", operation="add", permissions=["order:approve"])


def test_list_users_and_counts(services) -> None:
    _, roles, admin, clerk = services

    assert [user.email for user in roles.list_users(admin)] == ["admin@gsr.in", "clerk@gsr.in"]
    assert [user.id for user in roles.list_users(admin, query="clerk")] == [clerk.id]
    with pytest.raises(AccessDeniedError):
        roles.list_users(clerk)
    counts = roles.count_by_role()
    assert counts["admin"] == 1
    assert counts["viewer"] == 1
    assert counts["finance"] == 0
