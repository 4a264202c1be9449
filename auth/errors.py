"""
auth/errors.py -- Exception taxonomy for the authentication core.

Every failure the core can produce is an AuthError subclass carrying a stable
machine code, an HTTP status, a user-displayable message and optional
structured detail. api/main.py converts any AuthError into the same
{"error": {"code", "message", "detail"}} envelope, so the HTTP layer needs no
per-error special-casing.

Anti-enumeration: InvalidCredentials deliberately covers both "no such user"
and "wrong password". Never add a subclass that tells the two apart.

Layer rule: no imports from api/. HTTP status codes come from the stdlib
http module so this file stays framework-free.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class AuthError(Exception):
    """Base class for all expected authentication failures."""

    code: str = "auth_error"
    status_code: int = HTTPStatus.BAD_REQUEST
    message: str = "Authentication error."

    def __init__(
        self,
        message: str | None = None,
        *,
        detail: dict[str, Any] | None = None,
        status_code: int | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail
        # Extra response headers the HTTP layer may attach (e.g. quota info).
        self.headers: dict[str, str] | None = None
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message, "detail": self.detail}}


class ValidationFailed(AuthError):
    """One or more username/password rules were violated.

    errors holds every violation, in rule order -- callers must show them all.
    """

    code = "validation_failed"
    status_code = HTTPStatus.BAD_REQUEST
    message = "Validation failed"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(detail={"errors": self.errors})


class DuplicateUser(AuthError):
    code = "duplicate_user"
    status_code = HTTPStatus.CONFLICT
    message = "Username already exists"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Invalid credentials"


class InvalidToken(AuthError):
    """Malformed, badly signed, or expired token -- one outcome for all three."""

    code = "invalid_token"
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Invalid or expired token"


class TokenRequired(AuthError):
    code = "token_required"
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Access token required"


class UserNotFound(AuthError):
    code = "user_not_found"
    status_code = HTTPStatus.NOT_FOUND
    message = "User not found"


class RateLimited(AuthError):
    code = "rate_limited"
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    message = "Too many authentication attempts. Please try again later."

    def __init__(self, retry_after: int, *, blocked: bool = True) -> None:
        self.retry_after = retry_after
        self.blocked = blocked
        super().__init__(detail={"retry_after": retry_after, "blocked": blocked})


class InternalFailure(AuthError):
    """Unexpected failure. The cause is logged server-side, never returned."""

    code = "internal_error"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "An unexpected error occurred."
