from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.application.security import SpecialUserConfig, SpecialUserRegistry, load_special_users
from app.domain.errors import ProgrammingError


def make_registry() -> SpecialUserRegistry:
    return SpecialUserRegistry(
        [
            SpecialUserConfig(email="CEO@x.com", name="CEO Name", role="admin"),
            SpecialUserConfig(
                email="plant@x.com",
                designation="Plant Head",
                custom_permissions=("order:read", "batch:*"),
            ),
        ]
    )


def test_lookup_is_case_insensitive() -> None:
    registry = make_registry()

    assert registry.has_special_configuration("ceo@X.com") is True
    assert registry.get_configuration(" ceo@x.com ") is not None
    assert registry.has_special_configuration("someone@x.com") is False
    assert registry.configured_emails() == ["ceo@x.com", "plant@x.com"]


def test_configuration_overlays_profile_but_keeps_identity() -> None:
    registry = make_registry()
    profile = {"id": "u-1", "email": "ceo@x.com", "role": "viewer", "name": "ceo", "designation": None}

    merged = registry.apply_configuration("ceo@x.com", profile)

    assert merged == {"id": "u-1", "email": "ceo@x.com", "role": "admin", "name": "CEO Name", "designation": None}
    assert profile["role"] == "viewer"


def test_unconfigured_email_is_returned_unchanged() -> None:
    profile = {"id": "u-2", "email": "other@x.com", "role": "viewer"}

    merged = make_registry().apply_configuration("other@x.com", profile)

    assert merged == profile
    assert merged is not profile


def test_extra_permissions_are_merged_without_duplicates() -> None:
    profile = {
        "id": "u-3",
        "email": "plant@x.com",
        "role": "production",
        "custom_settings": {"theme": "dark", "special_permissions": ["order:read"]},
    }

    merged = make_registry().apply_configuration("plant@x.com", profile)

    assert merged["role"] == "production"
    assert merged["designation"] == "Plant Head"
    assert merged["custom_settings"] == {"theme": "dark", "special_permissions": ["order:read", "batch:*"]}
    assert profile["custom_settings"]["special_permissions"] == ["order:read"]


def test_invalid_configurations_are_rejected() -> None:
    with pytest.raises(ProgrammingError):
        SpecialUserConfig(email="x@x.com", role="owner")
    with pytest.raises(ProgrammingError):
        SpecialUserRegistry([SpecialUserConfig(email="a@x.com"), SpecialUserConfig(email="A@x.com")])


def test_load_special_users(tmp_path: Path) -> None:
    path = tmp_path / "special_users.json"
    path.write_text(
        json.dumps([{"email": "ceo@x.com", "name": "CEO Name", "role": "admin", "custom_permissions": ["*"]}]),
        encoding="utf-8",
    )

    registry = load_special_users(path)

    config = registry.get_configuration("ceo@x.com")
    assert config is not None
    assert config.role == "admin"
    assert config.custom_permissions == ("*",)


def test_missing_special_users_file_gives_empty_registry(tmp_path: Path) -> None:
    assert load_special_users(tmp_path / "absent.json").configured_emails() == []
    assert load_special_users(None).configured_emails() == []


def test_special_users_file_must_hold_a_list(tmp_path: Path) -> None:
    path = tmp_path / "special_users.json"
    path.write_text(json.dumps({"email": "ceo@x.com"}), encoding="utf-8")

    with pytest.raises(ProgrammingError):
        load_special_users(path)


def test_malformed_stored_permissions_are_replaced_by_configured_ones() -> None:
    profile = {
        "id": "u-4",
        "email": "plant@x.com",
        "role": "production",
        "custom_settings": {"special_permissions": 7},
    }

    merged = make_registry().apply_configuration("plant@x.com", profile)

    assert merged["custom_settings"]["special_permissions"] == ["order:read", "batch:*"]
