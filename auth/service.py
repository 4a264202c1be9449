"""
auth/service.py -- Auth Orchestrator: register, login, verify, profile.

The only component the HTTP layer calls. It composes the validator, the
rate limiter, the credential store, the password hasher and the token
service, all injected through the constructor.

Ordering for register and login:
  1. validate_credentials() -- format errors raise ValidationFailed and never
     touch the rate limiter.
  2. limiter.check() -- a blocked key raises RateLimited before any store or
     bcrypt work.
  3. credential work -- failures call record_failure(), success calls
     record_success().

Anti-enumeration [C1]: login answers an unknown username and a wrong
password with the same InvalidCredentials, and runs bcrypt in both cases so
response time does not tell them apart either.

Locking: bcrypt runs with no lock held. The store and limiter take their own
locks for the few dict operations around it.

Layer rule: no imports from api/. build_auth_service() is the one place that
reads Settings; the components themselves never do.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, NoReturn

from auth.errors import DuplicateUser, InvalidCredentials, RateLimited, UserNotFound, ValidationFailed
from auth.models import LoginResult, RateLimitStatus, TokenClaims, UserProfile, UserRecord
from auth.passwords import PasswordHasher
from auth.rate_limit import RateLimiter
from auth.store import CredentialStore, build_store
from auth.tokens import TokenService
from auth.validation import normalize_username, validate_credentials

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("authgate.auth")

REGISTER_ENDPOINT = "register"
LOGIN_ENDPOINT = "login"


def _new_user_id() -> str:
    return f"user-{uuid.uuid4().hex}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuthService:
    """Composes the auth components into the four public operations.

    Usage:
        service = AuthService(store, hasher, tokens, limiter)
        service.register("alice_01", "Str0ng!Passw0rd", identifier="203.0.113.7")
        result = service.login("alice_01", "Str0ng!Passw0rd", identifier="203.0.113.7")
        claims = service.verify(result.token)
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        limiter: RateLimiter,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.limiter = limiter

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def register(self, username: str, password: str, identifier: str) -> UserProfile:
        """Create a new account. Raises ValidationFailed, RateLimited or DuplicateUser."""
        self._validate(username, password)
        self._gate(identifier, REGISTER_ENDPOINT)

        normalized = normalize_username(username)
        if self.store.exists(normalized):
            self.limiter.record_failure(identifier, REGISTER_ENDPOINT)
            raise DuplicateUser()

        record = UserRecord(
            id=_new_user_id(),
            username=normalized,
            password_hash=self.hasher.hash(password),
            created_at=_now_iso(),
        )
        try:
            self.store.create(record)
        except DuplicateUser:
            # Lost a race with a concurrent registration for the same name.
            self.limiter.record_failure(identifier, REGISTER_ENDPOINT)
            raise

        self.limiter.record_success(identifier, REGISTER_ENDPOINT)
        logger.info("Registered user %s (%s)", record.username, record.id)
        return record.to_profile()

    def login(self, username: str, password: str, identifier: str) -> LoginResult:
        """Check a password and issue a token. Raises ValidationFailed, RateLimited or InvalidCredentials."""
        self._validate(username, password)
        self._gate(identifier, LOGIN_ENDPOINT)

        record = self.store.find_by_username(normalize_username(username))
        if record is None:
            self.hasher.dummy_verify(password)
            self._reject_login(identifier)
        elif not self.hasher.verify(password, record.password_hash):
            self._reject_login(identifier)

        self.limiter.record_success(identifier, LOGIN_ENDPOINT)
        token = self.tokens.issue(record.id, record.username)
        logger.info("User %s logged in", record.username)
        return LoginResult(token=token, expires_in=self.tokens.ttl_seconds, user=record.to_profile())

    def verify(self, token: str) -> TokenClaims:
        """Decode a bearer token. Raises InvalidToken."""
        return self.tokens.verify(token)

    def get_profile(self, username: str) -> UserProfile:
        """Public profile for a username taken from verified claims. Raises UserNotFound."""
        record = self.store.find_by_username(normalize_username(username))
        if record is None:
            raise UserNotFound()
        return record.to_profile()

    def rate_limit_status(self, identifier: str, endpoint: str) -> RateLimitStatus:
        return self.limiter.check(identifier, endpoint)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(username: str, password: str) -> None:
        errors = validate_credentials(username, password)
        if errors:
            raise ValidationFailed(errors)

    def _gate(self, identifier: str, endpoint: str) -> None:
        status = self.limiter.check(identifier, endpoint)
        if not status.allowed:
            logger.info("Rejected %s attempt from %s: rate limited", endpoint, identifier)
            raise RateLimited(status.retry_after, blocked=status.blocked)

    def _reject_login(self, identifier: str) -> NoReturn:
        status = self.limiter.record_failure(identifier, LOGIN_ENDPOINT)
        raise InvalidCredentials(detail={"remaining_attempts": status.remaining})


def build_auth_service(settings: Settings) -> AuthService:
    """Wire an AuthService from configuration."""
    return AuthService(
        store=build_store(settings.store_backend, settings.database_url),
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenService(
            secret_key=settings.secret_key,
            ttl_seconds=settings.token_ttl_seconds,
            previous_secret_keys=settings.previous_secret_keys,
        ),
        limiter=RateLimiter(
            max_attempts=settings.rate_limit_max_attempts,
            window_seconds=settings.rate_limit_window_seconds,
            block_seconds=settings.rate_limit_block_seconds,
        ),
    )
