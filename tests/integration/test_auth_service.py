from __future__ import annotations

import pytest

from app.application.dto.auth_dto import CreateUserRequest, LoginRequest
from app.application.security import SpecialUserConfig, SpecialUserRegistry
from app.application.services.auth_service import AuthService
from app.application.services.profile_service import ProfileService
from app.domain.errors import AuthenticationError
from app.infrastructure.db.repositories.user_repo import UserProfileRepository
from app.infrastructure.security.password_hash import hash_password


def make_services(session_factory, special_users: SpecialUserRegistry | None = None):
    profiles = ProfileService(special_users=special_users, session_factory=session_factory)
    auth = AuthService(profile_service=profiles, session_factory=session_factory)
    return profiles, auth


def test_create_and_login_user(session_factory) -> None:
    profiles, auth = make_services(session_factory)
    created = profiles.create_profile(CreateUserRequest(email="Clerk@GSR.in", password="StrongPass1"))

    session_ctx = auth.login(LoginRequest(email="clerk@gsr.in", password="StrongPass1"))

    assert session_ctx.user_id == created.id
    assert session_ctx.role == "viewer"
    assert session_ctx.user.name == "clerk"
    assert [entry.action for entry in profiles.get_profile_history(created.id)] == ["login", "create_user"]


def test_wrong_password_and_unknown_user_are_rejected(session_factory) -> None:
    profiles, auth = make_services(session_factory)
    profiles.create_profile(CreateUserRequest(email="clerk@gsr.in", password="StrongPass1"))

    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.login(LoginRequest(email="clerk@gsr.in", password="WrongPass1"))
    with pytest.raises(AuthenticationError):
        auth.login(LoginRequest(email="ghost@gsr.in", password="StrongPass1"))


def test_deactivated_user_cannot_log_in(session_factory) -> None:
    profiles, auth = make_services(session_factory)
    created = profiles.create_profile(CreateUserRequest(email="clerk@gsr.in", password="StrongPass1"))
    repo = UserProfileRepository()
    with session_factory() as session:
        row = repo.get_by_id(session, created.id)
        assert row is not None
        repo.update_fields(session, row, updated_by=None, active=False)

    with pytest.raises(AuthenticationError, match="deactivated"):
        auth.login(LoginRequest(email="clerk@gsr.in", password="StrongPass1"))


def test_legacy_bcrypt_hash_is_upgraded_on_login(session_factory) -> None:
    _, auth = make_services(session_factory)
    repo = UserProfileRepository()
    with session_factory() as session:
        row = repo.create(
            session,
            email="legacy@gsr.in",
            password_hash=hash_password("OldSecret1", scheme="bcrypt"),
            role="finance",
        )
        user_id = row.id

    session_ctx = auth.login(LoginRequest(email="legacy@gsr.in", password="OldSecret1"))

    assert session_ctx.role == "finance"
    with session_factory() as session:
        row = repo.get_by_id(session, user_id)
        assert row is not None
        assert str(row.password_hash).startswith("$argon2")


def test_login_applies_special_user_configuration(session_factory) -> None:
    registry = SpecialUserRegistry([SpecialUserConfig(email="ceo@x.com", name="CEO Name", role="admin")])
    _, auth = make_services(session_factory, registry)
    repo = UserProfileRepository()
    with session_factory() as session:
        row = repo.create(
            session,
            email="ceo@x.com",
            password_hash=hash_password("CeoSecret1"),
            role="viewer",
            name="ceo",
        )
        user_id = row.id

    session_ctx = auth.login(LoginRequest(email="ceo@x.com", password="CeoSecret1"))

    assert session_ctx.user.id == user_id
    assert session_ctx.user.email == "ceo@x.com"
    assert session_ctx.role == "admin"
    assert session_ctx.user.name == "CEO Name"
