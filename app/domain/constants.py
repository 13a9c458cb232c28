from __future__ import annotations

from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "admin"
    PRODUCTION = "production"
    SALES_MANAGER = "sales_manager"
    FINANCE = "finance"
    VIEWER = "viewer"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class Action(StrEnum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class BatchStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    QUALITY_CHECK = "quality_check"
    APPROVED = "approved"


class OrderStatus(StrEnum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    IN_PRODUCTION = "in_production"
    READY = "ready"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"


WILDCARD = "*"
