from __future__ import annotations

import pytest

from app.application.dto.auth_dto import UserProfile
from app.application.security import GUARDS, PermissionGuard, guard
from app.domain.errors import AccessDeniedError, AuthenticationError


def make_user(role: str, *, active: bool = True) -> UserProfile:
    return UserProfile(id=f"{role}-id", email=f"{role}@gsr.in", role=role, active=active)


def test_guard_runs_operation_for_permitted_user() -> None:
    result = GUARDS["create_order"].run(make_user("sales_manager"), lambda: "created")

    assert result == "created"


def test_guard_requires_a_user() -> None:
    with pytest.raises(AuthenticationError):
        GUARDS["create_order"].check(None)


def test_guard_denial_carries_code_and_message() -> None:
    calls: list[str] = []

    with pytest.raises(AccessDeniedError) as exc_info:
        GUARDS["create_invoice"].run(make_user("viewer"), lambda: calls.append("ran"))

    assert exc_info.value.code == "INSUFFICIENT_PERMISSIONS"
    assert str(exc_info.value) == "You need Finance or Admin role to create invoices"
    assert calls == []


def test_default_denial_message() -> None:
    with pytest.raises(AccessDeniedError, match="permission to delete order"):
        PermissionGuard("order", "delete").check(make_user("viewer"))


def test_inactive_user_is_denied() -> None:
    with pytest.raises(AccessDeniedError):
        GUARDS["delete_order"].check(make_user("admin", active=False))


def test_price_override_guard_uses_context() -> None:
    override = guard("override_price")
    manager = make_user("sales_manager")

    override.check(manager, {"original_price": 100.0, "new_price": 85.0})
    with pytest.raises(AccessDeniedError) as exc_info:
        override.check(manager, {"original_price": 100.0, "new_price": 50.0})

    assert exc_info.value.code == "CUSTOM_CHECK_FAILED"
    assert override.allows(make_user("admin"), {"original_price": 100.0, "new_price": 1.0}) is True


def test_price_override_guard_without_prices_is_denied() -> None:
    override = guard("override_price")
    manager = make_user("sales_manager")

    assert override.allows(manager) is False
    assert override.allows(manager, {"original_price": 100.0}) is False
    with pytest.raises(AccessDeniedError) as exc_info:
        override.check(manager)

    assert exc_info.value.code == "CUSTOM_CHECK_FAILED"


def test_custom_check_default_message() -> None:
    strict = PermissionGuard("order", "read", custom_check=lambda _user, _context: False)

    with pytest.raises(AccessDeniedError, match="Custom authorization check failed"):
        strict.check(make_user("viewer"))


def test_manage_users_guard_is_admin_only() -> None:
    assert GUARDS["manage_users"].allows(make_user("admin")) is True
    for role in ("production", "sales_manager", "finance", "viewer"):
        assert GUARDS["manage_users"].allows(make_user(role)) is False


def test_pre_configured_guards() -> None:
    assert set(GUARDS) == {
        "create_order",
        "update_order",
        "delete_order",
        "update_inventory",
        "create_invoice",
        "create_credit_note",
        "update_pricing",
        "override_price",
        "manage_users",
    }
