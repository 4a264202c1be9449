"""
auth/passwords.py -- Adaptive password hashing with bcrypt.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage is simpler, has no
compatibility shim, and is actively maintained.

72-byte limit: bcrypt only looks at the first 72 bytes of its input, and
recent releases refuse longer input outright. Passwords may be up to 100
characters (far more bytes in UTF-8), so every password is first reduced to
base64(SHA-256(password)) -- 44 ASCII bytes -- before it reaches bcrypt.
This is the same construction as passlib's bcrypt_sha256.

Cost factor: injected by the caller (see core/config.py profiles). Each +1
doubles the work. Never read settings here.

Timing equalization [C1]: dummy_verify() runs a full bcrypt check against a
hash computed at construction time. The orchestrator calls it when a
username does not exist so response time does not reveal account existence.
"""

from __future__ import annotations

import base64
import hashlib
import logging

import bcrypt

logger = logging.getLogger("authgate.auth")


def _prepare(plain: str) -> bytes:
    return base64.b64encode(hashlib.sha256(plain.encode("utf-8")).digest())


class PasswordHasher:
    """bcrypt hash/verify with a fixed cost factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        digest = hasher.hash("Str0ng!Passw0rd")
        hasher.verify("Str0ng!Passw0rd", digest)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        # Computed once so the first unknown-user login is not measurably
        # slower than subsequent ones.
        self._dummy_hash = self.hash("authgate_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a salted bcrypt digest. Two calls never return the same string."""
        return bcrypt.hashpw(_prepare(plain), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, plain: str, digest: str) -> bool:
        """Return True if plain matches digest. A malformed digest is a mismatch."""
        try:
            return bcrypt.checkpw(_prepare(plain), digest.encode("ascii"))
        except (ValueError, TypeError):
            logger.warning("Stored password hash is malformed; treating as mismatch")
            return False

    def dummy_verify(self, plain: str) -> None:
        """Spend one verification's worth of CPU without a real account."""
        self.verify(plain, self._dummy_hash)
