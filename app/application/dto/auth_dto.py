from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.constants import WILDCARD, Action

RoleName = Literal["admin", "production", "sales_manager", "finance", "viewer"]


def permission_list(raw: Any) -> tuple[str, ...]:
    """Normalise a stored ``special_permissions`` value; anything but a string or a sequence yields nothing."""
    if isinstance(raw, str):
        return (raw,) if raw else ()
    if isinstance(raw, list | tuple | set | frozenset):
        return tuple(str(item) for item in raw)
    return ()


class UserProfile(BaseModel):
    """Immutable snapshot of a user as seen by permission checks.

    ``role`` is a plain string so that profiles carrying a role unknown to
    this build can still be loaded; permission checks deny them.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: str
    name: str | None = None
    designation: str | None = None
    active: bool = True
    custom_settings: dict[str, Any] = Field(default_factory=dict)

    @property
    def special_permissions(self) -> tuple[str, ...]:
        return permission_list(self.custom_settings.get("special_permissions"))


class LoginRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionContext(BaseModel):
    user: UserProfile

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> str:
        return self.user.role


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8)
    name: str | None = None


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = None
    designation: str | None = None
    display_name: str | None = None
    title: str | None = None
    department: str | None = None

    def provided(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class PermissionChangeRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: str
    operation: Literal["add", "remove", "replace"]
    permissions: list[str] = Field(default_factory=list)

    @field_validator("permissions")
    @classmethod
    def _check_format(cls, value: list[str]) -> list[str]:
        actions = {*Action.values(), WILDCARD}
        for item in value:
            if item == WILDCARD:
                continue
            resource, sep, action = item.partition(":")
            if not sep or not resource or action not in actions:
                raise ValueError(f"Permission must look like 'resource:action', got {item!r}")
        return value
