"""
auth/validation.py -- Username and password acceptability rules.

Pure functions, no I/O, no state. Every applicable rule is evaluated and every
violation is returned so the user can fix all problems in one round trip.
The message strings are part of the public contract (clients display them
verbatim); change them only together with the clients.

A blank username or an empty password short-circuits the remaining rules for
that field only -- "required" is the one message worth showing in that case.
"""

from __future__ import annotations

import re

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 100

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

COMMON_PASSWORDS = frozenset(
    {
        "password",
        "123456",
        "password123",
        "admin",
        "qwerty",
        "letmein",
        "welcome",
        "monkey",
        "1234567890",
        "abc123",
        "password1",
        "123123",
        "dragon",
        "master",
        "hello",
    }
)

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")

MSG_USERNAME_REQUIRED = "Username is required"
MSG_USERNAME_TOO_SHORT = f"Username must be at least {USERNAME_MIN_LENGTH} characters long"
MSG_USERNAME_TOO_LONG = f"Username must be at most {USERNAME_MAX_LENGTH} characters long"
MSG_USERNAME_CHARSET = "Username can only contain letters, numbers, and underscores"
MSG_PASSWORD_REQUIRED = "Password is required"
MSG_PASSWORD_TOO_SHORT = f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
MSG_PASSWORD_TOO_LONG = f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
MSG_PASSWORD_UPPERCASE = "Password must contain at least one uppercase letter"
MSG_PASSWORD_LOWERCASE = "Password must contain at least one lowercase letter"
MSG_PASSWORD_DIGIT = "Password must contain at least one number"
MSG_PASSWORD_SPECIAL = "Password must contain at least one special character (!@#$%^&*())"
MSG_PASSWORD_COMMON = "Password is too common. Please choose a more secure password"


def normalize_username(username: str) -> str:
    """Canonical lookup key for a username. The only place case-folding happens."""
    return username.strip().lower()


def validate_username(username: str | None) -> list[str]:
    if not username or not username.strip():
        return [MSG_USERNAME_REQUIRED]

    errors: list[str] = []
    if len(username) < USERNAME_MIN_LENGTH:
        errors.append(MSG_USERNAME_TOO_SHORT)
    elif len(username) > USERNAME_MAX_LENGTH:
        errors.append(MSG_USERNAME_TOO_LONG)
    if not _USERNAME_RE.match(username):
        errors.append(MSG_USERNAME_CHARSET)
    return errors


def validate_password(password: str | None) -> list[str]:
    if not password:
        return [MSG_PASSWORD_REQUIRED]

    errors: list[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(MSG_PASSWORD_TOO_SHORT)
    elif len(password) > PASSWORD_MAX_LENGTH:
        errors.append(MSG_PASSWORD_TOO_LONG)

    # ASCII classes only; "É" is neither an uppercase letter nor a symbol here.
    if not any("A" <= c <= "Z" for c in password):
        errors.append(MSG_PASSWORD_UPPERCASE)
    if not any("a" <= c <= "z" for c in password):
        errors.append(MSG_PASSWORD_LOWERCASE)
    if not any("0" <= c <= "9" for c in password):
        errors.append(MSG_PASSWORD_DIGIT)
    if not any(c in SPECIAL_CHARACTERS for c in password):
        errors.append(MSG_PASSWORD_SPECIAL)

    if password.lower() in COMMON_PASSWORDS:
        errors.append(MSG_PASSWORD_COMMON)
    return errors


def validate_credentials(username: str | None, password: str | None) -> list[str]:
    """Return every rule violation for the pair; an empty list means acceptable."""
    return validate_username(username) + validate_password(password)
