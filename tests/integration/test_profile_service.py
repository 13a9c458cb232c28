from __future__ import annotations

import pytest

from app.application.dto.auth_dto import CreateUserRequest, ProfileUpdateRequest
from app.application.security import SpecialUserConfig, SpecialUserRegistry
from app.application.services.profile_service import ProfileService
from app.domain.rules.validation import ValidationError

CEO = SpecialUserConfig(
    email="ceo@x.com",
    name="CEO Name",
    designation="Managing Director",
    role="admin",
    custom_permissions=("report:*",),
)


def test_create_profile_defaults(session_factory) -> None:
    service = ProfileService(session_factory=session_factory)

    profile = service.create_profile(CreateUserRequest(email="ravi.k@gsr.in", password="StrongPass1"))

    assert profile.role == "viewer"
    assert profile.name == "ravi.k"
    assert profile.active is True
    assert service.hydrate(profile.id) == profile


def test_duplicate_email_is_rejected(session_factory) -> None:
    service = ProfileService(session_factory=session_factory)
    service.create_profile(CreateUserRequest(email="ravi@gsr.in", password="StrongPass1"))

    with pytest.raises(ValueError, match="already exists"):
        service.create_profile(CreateUserRequest(email="RAVI@gsr.in", password="StrongPass1"))


def test_special_configuration_is_applied_on_create(session_factory) -> None:
    service = ProfileService(special_users=SpecialUserRegistry([CEO]), session_factory=session_factory)

    profile = service.create_profile(CreateUserRequest(email="ceo@x.com", password="StrongPass1"))

    assert profile.email == "ceo@x.com"
    assert profile.role == "admin"
    assert profile.name == "CEO Name"
    assert profile.designation == "Managing Director"
    assert profile.special_permissions == ("report:*",)


def test_hydrate_unknown_user_returns_none(session_factory) -> None:
    assert ProfileService(session_factory=session_factory).hydrate("missing") is None


def test_update_profile_strips_stores_and_audits(session_factory) -> None:
    service = ProfileService(session_factory=session_factory)
    profile = service.create_profile(CreateUserRequest(email="meena@gsr.in", password="StrongPass1"))

    result = service.update_profile(
        profile.id,
        ProfileUpdateRequest(name="  Meena Iyer ", designation="QA Lead", display_name="Meena", department="Quality"),
    )

    assert result.success is True
    assert result.message == "Profile updated successfully"
    assert result.user is not None
    assert result.user.name == "Meena Iyer"
    assert result.user.designation == "QA Lead"
    assert result.user.custom_settings == {"display_name": "Meena", "department": "Quality"}

    latest = service.get_profile_history(profile.id)[0]
    assert latest.action == "update_profile"
    assert latest.actor_id == profile.id
    assert latest.payload["old_values"] == {"name": "meena", "designation": None, "display_name": None, "department": None}
    assert latest.payload["new_values"]["name"] == "Meena Iyer"


def test_blank_optional_fields_are_cleared(session_factory) -> None:
    service = ProfileService(session_factory=session_factory)
    profile = service.create_profile(CreateUserRequest(email="meena@gsr.in", password="StrongPass1"))
    service.update_profile(profile.id, ProfileUpdateRequest(designation="QA Lead", title="Head"))

    result = service.update_profile(profile.id, ProfileUpdateRequest(designation="", title=""))

    assert result.user is not None
    assert result.user.designation is None
    assert "title" not in result.user.custom_settings
    assert result.user.name == "meena"


def test_invalid_update_returns_errors_and_changes_nothing(session_factory) -> None:
    service = ProfileService(session_factory=session_factory)
    profile = service.create_profile(CreateUserRequest(email="meena@gsr.in", password="StrongPass1"))

    result = service.update_profile(profile.id, ProfileUpdateRequest(name="M", designation="QA <Lead>"))

    assert result.success is False
    assert result.message == "Profile validation failed"
    assert result.errors == (
        ValidationError("name", "Name must be at least 2 characters"),
        ValidationError(
            "designation", "Designation can only contain letters, numbers, spaces, hyphens, and apostrophes"
        ),
    )
    assert service.hydrate(profile.id) == profile


def test_update_of_missing_profile(session_factory) -> None:
    result = ProfileService(session_factory=session_factory).update_profile("missing", ProfileUpdateRequest(name="Asha"))

    assert result.success is False
    assert result.message == "User profile not found"


def test_validate_profile_update_only_checks_provided_fields() -> None:
    service = ProfileService()

    assert service.validate_profile_update(ProfileUpdateRequest(title="Ops")).is_valid is True
    assert service.validate_profile_update(ProfileUpdateRequest(name=None)).is_valid is False
