from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Final, TypeVar

from app.application.dto.auth_dto import UserProfile
from app.application.security.role_matrix import can_override_price, has_permission
from app.domain.errors import AccessDeniedError, AuthenticationError

T = TypeVar("T")
CustomCheck = Callable[[UserProfile, Any], bool]

logger = logging.getLogger(__name__)


class PermissionGuard:
    """Runs an operation only for a user allowed to ``action`` the ``resource``."""

    def __init__(
        self,
        resource: str,
        action: str,
        *,
        error_message: str | None = None,
        custom_check: CustomCheck | None = None,
    ) -> None:
        self.resource = resource
        self.action = action
        self.error_message = error_message
        self.custom_check = custom_check

    def allows(self, user: UserProfile | None, context: Any = None) -> bool:
        if not has_permission(user, self.resource, self.action):
            return False
        return self.custom_check is None or bool(self.custom_check(user, context))  # type: ignore[arg-type]

    def check(self, user: UserProfile | None, context: Any = None) -> None:
        if user is None:
            raise AuthenticationError("Please log in to continue")
        if not has_permission(user, self.resource, self.action):
            message = (
                self.error_message
                or f"Access denied: You don't have permission to {self.action} {self.resource}"
            )
            logger.warning("Denied %s:%s for user %s", self.resource, self.action, user.id)
            raise AccessDeniedError(message, code="INSUFFICIENT_PERMISSIONS")
        if self.custom_check is not None and not self.custom_check(user, context):
            message = self.error_message or "Access denied: Custom authorization check failed"
            logger.warning("Custom check failed for %s:%s, user %s", self.resource, self.action, user.id)
            raise AccessDeniedError(message, code="CUSTOM_CHECK_FAILED")

    def run(self, user: UserProfile | None, operation: Callable[[], T], context: Any = None) -> T:
        self.check(user, context)
        return operation()


def _price_override_check(user: UserProfile, context: Mapping[str, float] | None) -> bool:
    if not isinstance(context, Mapping):
        return False
    original, new = context.get("original_price"), context.get("new_price")
    if original is None or new is None:
        return False
    return can_override_price(user, original, new)


GUARDS: Final[dict[str, PermissionGuard]] = {
    "create_order": PermissionGuard(
        "order", "create", error_message="You need Sales Manager or Admin role to create orders"
    ),
    "update_order": PermissionGuard(
        "order", "update", error_message="You need Sales Manager or Admin role to update orders"
    ),
    "delete_order": PermissionGuard("order", "delete", error_message="You need Admin role to delete orders"),
    "update_inventory": PermissionGuard(
        "inventory", "update", error_message="You need Production or Admin role to update inventory"
    ),
    "create_invoice": PermissionGuard(
        "invoice", "create", error_message="You need Finance or Admin role to create invoices"
    ),
    "create_credit_note": PermissionGuard(
        "credit_note", "create", error_message="You need Finance or Admin role to create credit notes"
    ),
    "update_pricing": PermissionGuard(
        "pricing", "update", error_message="You need Sales Manager or Admin role to update pricing"
    ),
    "override_price": PermissionGuard(
        "pricing",
        "update",
        error_message="Price override exceeds your authorization limit",
        custom_check=_price_override_check,
    ),
    "manage_users": PermissionGuard(
        "user_profile", "update", error_message="Admin role required to manage users"
    ),
}


def guard(name: str) -> PermissionGuard:
    return GUARDS[name]
