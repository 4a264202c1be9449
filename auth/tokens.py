"""
auth/tokens.py -- Signed, time-bounded bearer tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry user_id, username (as "sub"),
       iat and exp. Nothing is stored server-side -- validity is derived
       purely from the signature and the expiry at verification time.

  Expiry is checked here against the injected clock rather than by jose
       (verify_exp=False). jose always compares against the wall clock, which
       would make TTL behaviour untestable without patching time globally.

  Secret rotation: new tokens are signed with secret_key only. Verification
       also accepts previous_secret_keys so tokens minted before a rotation
       keep working until they expire. Removing a key from that list
       invalidates every token it signed.

  Every failure mode (bad encoding, bad signature, missing claims, expired)
       raises the same InvalidToken. Callers must not try to distinguish them.

Layer rule: no imports from api/. Secrets arrive through the constructor;
this module never reads configuration.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from jose import JWTError, jwt

from auth.errors import InvalidToken
from auth.models import TokenClaims

logger = logging.getLogger("authgate.auth")

_ALGORITHM = "HS256"
_BEARER_SCHEME = "Bearer"


class TokenService:
    """Issue and verify HS256 JWTs with a fixed time-to-live.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key, ttl_seconds=1800)
        token = tokens.issue("user-ab12", "alice_01")
        claims = tokens.verify(token)          # TokenClaims or raises InvalidToken
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int,
        previous_secret_keys: Iterable[str] = (),
        algorithm: str = _ALGORITHM,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._secret_key = secret_key
        self._verification_keys = [secret_key, *previous_secret_keys]
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, user_id: str, username: str) -> str:
        """Encode a signed JWT expiring ttl_seconds from now.

        iat and exp keep the clock's fraction (NumericDate allows it) so the
        token lives for exactly ttl_seconds.
        """
        issued_at = self._clock()
        payload = {
            "sub": username,
            "user_id": user_id,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT. Raises InvalidToken on any failure."""
        payload = self._decode(token)
        try:
            claims = TokenClaims(
                user_id=str(payload["user_id"]),
                username=str(payload["sub"]),
                issued_at=float(payload["iat"]),
                expires_at=float(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken() from exc

        if self._clock() > claims.expires_at:
            raise InvalidToken()
        return claims

    def _decode(self, token: str) -> dict:
        for key in self._verification_keys:
            try:
                return jwt.decode(
                    token,
                    key,
                    algorithms=[self._algorithm],
                    options={"verify_exp": False},
                )
            except JWTError:
                continue
        logger.debug("Token rejected: undecodable or signed with an unknown key")
        raise InvalidToken()

    @staticmethod
    def extract_bearer(header_value: str | None) -> str | None:
        """Return the credential from an "Authorization: Bearer <token>" value.

        The header must be exactly two space-separated parts with the scheme
        first. Anything else (missing, wrong scheme, extra parts) yields None
        so the caller answers "access token required" without verifying.
        """
        if not header_value:
            return None
        parts = header_value.split(" ")
        if len(parts) != 2 or parts[0] != _BEARER_SCHEME or not parts[1]:
            return None
        return parts[1]
