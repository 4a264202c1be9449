"""
tests/conftest.py -- Shared test fixtures for AuthGate.

This module provides:
  - FakeClock / clock: a hand-advanced time source for TTL and window tests
  - hasher, tokens, limiter, store, service: unit-level components wired the
    same way build_auth_service() wires them, but with cheap bcrypt rounds
    and explicit limits so tests do not depend on profile defaults
  - api_client: TestClient over the real FastAPI app with an isolated
    AuthService injected through a patched lifespan

APP_ENV must be set before any api/ or core/ import so get_settings() picks
the test profile (auto-generated SECRET_KEY, slowapi request cap disabled).
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set APP_ENV before any core/api import so get_settings() resolves
# the test profile instead of development defaults.
os.environ.setdefault("APP_ENV", "test")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.passwords import PasswordHasher
from auth.rate_limit import RateLimiter
from auth.service import AuthService
from auth.store import InMemoryCredentialStore
from auth.tokens import TokenService

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789abcdef"
VALID_USERNAME = "alice_01"
VALID_PASSWORD = "Str0ng!Passw0rd"

MAX_ATTEMPTS = 5
WINDOW_SECONDS = 15 * 60
BLOCK_SECONDS = 30 * 60
TOKEN_TTL_SECONDS = 30 * 60


class FakeClock:
    """Callable time source. Starts at a fixed epoch and moves only when told."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """Lowest bcrypt cost -- hashing dominates suite runtime otherwise."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(secret_key=TEST_SECRET, ttl_seconds=TOKEN_TTL_SECONDS, clock=clock)


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(
        max_attempts=MAX_ATTEMPTS,
        window_seconds=WINDOW_SECONDS,
        block_seconds=BLOCK_SECONDS,
        clock=clock,
    )


@pytest.fixture
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def service(
    store: InMemoryCredentialStore,
    hasher: PasswordHasher,
    tokens: TokenService,
    limiter: RateLimiter,
) -> AuthService:
    return AuthService(store=store, hasher=hasher, tokens=tokens, limiter=limiter)


# ---------------------------------------------------------------------------
# HTTP fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires the pre-built test service into app.state so routes see an isolated
    store and limiter rather than ones built from environment settings. No
    purge task is started; tests drive expiry through the fake clock.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_service = service
        yield

    return test_lifespan


@pytest.fixture
def api_client(service: AuthService, clock: FakeClock) -> Generator[tuple[TestClient, AuthService, FakeClock], None, None]:
    """Yield (client, service, clock) for API integration tests.

    Function-scoped: every TestClient request comes from the same client
    address, so a shared limiter would leak failed attempts between tests.
    """
    app.router.lifespan_context = _patch_lifespan(service)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, service, clock
