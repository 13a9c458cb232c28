from app.application.security.guards import GUARDS, PermissionGuard, guard
from app.application.security.role_matrix import (
    ROLE_PERMISSIONS,
    can_access_financial_data,
    can_manage_customers,
    can_modify_inventory,
    can_override_price,
    get_user_permissions,
    has_permission,
    has_role,
)
from app.application.security.special_users import (
    SpecialUserConfig,
    SpecialUserRegistry,
    load_special_users,
)

__all__ = [
    "GUARDS",
    "ROLE_PERMISSIONS",
    "PermissionGuard",
    "SpecialUserConfig",
    "SpecialUserRegistry",
    "can_access_financial_data",
    "can_manage_customers",
    "can_modify_inventory",
    "can_override_price",
    "get_user_permissions",
    "guard",
    "has_permission",
    "has_role",
    "load_special_users",
]
