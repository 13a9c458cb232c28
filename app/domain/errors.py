from __future__ import annotations


class AppError(RuntimeError):
    """Base application-level error."""


class ProgrammingError(AppError):
    """Misuse of an API by calling code; not recoverable at runtime."""


class RuleSetError(ProgrammingError):
    """Malformed validation rule or rule-set."""


class UnknownFieldError(ProgrammingError, KeyError):
    """Reference to a field the form does not declare."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class AuthenticationError(AppError):
    """No authenticated user or bad credentials."""


class AccessDeniedError(AppError):
    """RBAC/permission failure."""

    def __init__(self, message: str, code: str = "UNAUTHORIZED") -> None:
        super().__init__(message)
        self.code = code
