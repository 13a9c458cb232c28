from __future__ import annotations

from collections.abc import Iterable
from typing import Final

from app.application.dto.auth_dto import UserProfile
from app.domain.constants import WILDCARD, Action, UserRole

Grant = tuple[str, str]

_CRU = (Action.CREATE, Action.READ, Action.UPDATE)


def _grants(resource: str, actions: Iterable[str]) -> set[Grant]:
    return {(resource, str(action)) for action in actions}


ROLE_PERMISSIONS: Final[dict[str, frozenset[Grant]]] = {
    UserRole.ADMIN: frozenset(_grants(WILDCARD, Action.values())),
    UserRole.PRODUCTION: frozenset(
        _grants("batch", _CRU)
        | _grants("inventory", (Action.READ, Action.UPDATE))
        | _grants("material_intake", _CRU)
        | _grants("supplier", (Action.READ,))
        | _grants("raw_material", (Action.READ,))
    ),
    UserRole.SALES_MANAGER: frozenset(
        _grants("order", _CRU)
        | _grants("customer", _CRU)
        | _grants("pricing", (Action.READ, Action.UPDATE))
        | _grants("interaction_log", _CRU)
        | _grants("samples_log", _CRU)
        | _grants("batch", (Action.READ,))
        | _grants("inventory", (Action.READ,))
    ),
    UserRole.FINANCE: frozenset(
        _grants("invoice", _CRU)
        | _grants("credit_note", _CRU)
        | _grants("financial_ledger", _CRU)
        | _grants("returns_log", _CRU)
        | _grants("order", (Action.READ,))
        | _grants("customer", (Action.READ,))
        | _grants("pricing", (Action.READ,))
    ),
    UserRole.VIEWER: frozenset(
        _grants("order", (Action.READ,))
        | _grants("customer", (Action.READ,))
        | _grants("batch", (Action.READ,))
        | _grants("inventory", (Action.READ,))
        | _grants("financial_ledger", (Action.READ,))
        | _grants("invoice", (Action.READ,))
    ),
}

FINANCIAL_PERMISSIONS: Final[frozenset[Grant]] = frozenset(
    {
        ("financial_ledger", Action.READ),
        ("invoice", Action.READ),
        ("credit_note", Action.READ),
    }
)
INVENTORY_PERMISSIONS: Final[frozenset[Grant]] = frozenset({("inventory", Action.UPDATE)})
CUSTOMER_MANAGEMENT_PERMISSIONS: Final[frozenset[Grant]] = frozenset(
    {("customer", Action.CREATE), ("customer", Action.UPDATE)}
)

SALES_PRICE_OVERRIDE_LIMIT_PERCENT: Final = 20.0


def special_permission_matches(granted: Iterable[str], resource: str, action: str) -> bool:
    candidates = {WILDCARD, f"{resource}:{action}", f"{resource}:{WILDCARD}", f"{WILDCARD}:{action}"}
    return any(item in candidates for item in granted)


def _is_active(user: UserProfile | None) -> bool:
    return user is not None and user.active is True


def has_permission(user: UserProfile | None, resource: str, action: str) -> bool:
    if not _is_active(user):
        return False
    assert user is not None
    if special_permission_matches(user.special_permissions, resource, action):
        return True
    grants = ROLE_PERMISSIONS.get(user.role)
    if grants is None:
        return False
    return (resource, action) in grants or (WILDCARD, action) in grants


def has_all_permissions(user: UserProfile | None, required: Iterable[Grant]) -> bool:
    return all(has_permission(user, resource, action) for resource, action in required)


def has_role(user: UserProfile | None, roles: Iterable[str]) -> bool:
    return _is_active(user) and user.role in set(roles)  # type: ignore[union-attr]


def get_user_permissions(user: UserProfile | None) -> frozenset[Grant]:
    if not _is_active(user):
        return frozenset()
    assert user is not None
    return ROLE_PERMISSIONS.get(user.role, frozenset())


def can_access_financial_data(user: UserProfile | None) -> bool:
    return has_all_permissions(user, FINANCIAL_PERMISSIONS)


def can_modify_inventory(user: UserProfile | None) -> bool:
    return has_all_permissions(user, INVENTORY_PERMISSIONS)


def can_manage_customers(user: UserProfile | None) -> bool:
    return has_all_permissions(user, CUSTOMER_MANAGEMENT_PERMISSIONS)


def can_override_price(user: UserProfile | None, original_price: float, new_price: float) -> bool:
    if not _is_active(user):
        return False
    assert user is not None
    if user.role == UserRole.ADMIN:
        return True
    if user.role != UserRole.SALES_MANAGER or original_price <= 0:
        return False
    change_percent = abs((new_price - original_price) / original_price) * 100
    return change_percent <= SALES_PRICE_OVERRIDE_LIMIT_PERCENT
