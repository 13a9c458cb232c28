from __future__ import annotations

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_argon2_hasher = PasswordHasher()

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str, scheme: str = "argon2") -> str:
    if not password:
        raise ValueError("Password must not be empty")

    if scheme == "argon2":
        return _argon2_hasher.hash(password)
    if scheme == "bcrypt":
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
    raise ValueError(f"Unsupported scheme: {scheme}")


def verify_password(password: str, hashed: str) -> bool:
    """Check ``password`` against an argon2 or legacy bcrypt hash.

    Unknown or corrupt hashes never verify.
    """
    if hashed.startswith("$argon2"):
        try:
            return _argon2_hasher.verify(hashed, password)
        except (VerificationError, InvalidHashError):
            return False
    if hashed.startswith(_BCRYPT_PREFIXES):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False
    return False


def needs_rehash(hashed: str) -> bool:
    if hashed.startswith("$argon2"):
        return _argon2_hasher.check_needs_rehash(hashed)
    return True
