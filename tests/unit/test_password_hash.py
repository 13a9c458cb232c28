import pytest

from app.infrastructure.security.password_hash import hash_password, needs_rehash, verify_password


def test_hash_and_verify_argon2():
    raw = "Secret123!"
    hashed = hash_password(raw)
    assert hashed.startswith("$argon2")
    assert verify_password(raw, hashed) is True
    assert verify_password("wrong", hashed) is False
    assert needs_rehash(hashed) is False


def test_legacy_bcrypt_hash_verifies_and_needs_rehash():
    raw = "AnotherPass#1"
    hashed = hash_password(raw, scheme="bcrypt")
    assert hashed.startswith("$2")
    assert verify_password(raw, hashed) is True
    assert verify_password("nope", hashed) is False
    assert needs_rehash(hashed) is True


def test_unknown_or_corrupt_hashes_never_verify():
    assert verify_password("x", "plaintext") is False
    assert verify_password("x", "$argon2id$broken") is False


def test_rejects_empty_password_and_unknown_scheme():
    with pytest.raises(ValueError):
        hash_password("")
    with pytest.raises(ValueError):
        hash_password("Secret123!", scheme="md5")
