"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own
domain shape; the store, limiter and orchestrator do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class UserRecord:
    """A registered identity as held by a CredentialStore.

    username is always the normalized (stripped, lowercased) form and is the
    unique lookup key. id is opaque ("user-<hex>") and never reused.
    password_hash is a bcrypt digest; it must never leave the auth layer.
    """

    id: str
    username: str
    password_hash: str
    created_at: str  # ISO 8601, UTC

    def to_profile(self) -> UserProfile:
        return UserProfile(id=self.id, username=self.username, created_at=self.created_at)


@dataclass(frozen=True)
class UserProfile:
    """Public projection of a UserRecord -- safe to return to clients."""

    id: str
    username: str
    created_at: str


@dataclass(frozen=True)
class TokenClaims:
    """Decoded contents of a verified bearer token."""

    user_id: str
    username: str
    issued_at: float  # epoch seconds
    expires_at: float  # epoch seconds


@dataclass(frozen=True)
class LoginResult:
    token: str
    expires_in: int
    user: UserProfile
    token_type: str = "bearer"  # noqa: S105 -- token type name, not a password


class AttemptState(str, enum.Enum):
    """Lifecycle of a rate-limit key.

    CLEAN is never stored -- it is the absence of a record.
    """

    CLEAN = "clean"
    ACCUMULATING = "accumulating"
    BLOCKED = "blocked"


@dataclass
class AttemptRecord:
    """Mutable per-(identifier, endpoint) failure bookkeeping.

    Only RateLimiter touches these, and only while holding its lock.
    """

    state: AttemptState
    count: int
    window_start: float
    blocked_until: float | None = None


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of a rate-limit check, shaped for response headers."""

    allowed: bool
    remaining: int
    limit: int
    blocked: bool = False
    blocked_until: float | None = None
    reset_time: float | None = None
    retry_after: int = 0  # whole seconds until the key may try again; 0 when allowed
