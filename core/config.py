"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for AuthGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.

  Profiles: APP_ENV selects one of "development", "test", "production". Every
      tunable left unset in the environment is filled from _PROFILE_DEFAULTS
      by the model_validator. An explicit env value always wins, so operators
      can tighten or loosen a single knob without switching profile.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. JWT signing
       relies on key entropy -- a short key weakens every issued token.

  [M7] In production, a missing SECRET_KEY is a hard startup failure. Other
       profiles auto-generate a key with a warning (tokens will not survive
       a restart).

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from typing import Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")

Profile = Literal["development", "test", "production"]

# Values applied when the matching env var is not set. Production is the
# strictest profile on every axis; test trades hashing cost for suite speed.
_PROFILE_DEFAULTS: dict[str, dict] = {
    "development": {
        "token_ttl_seconds": 30 * 60,
        "bcrypt_rounds": 12,
        "rate_limit_max_attempts": 5,
        "rate_limit_window_seconds": 15 * 60,
        "rate_limit_block_seconds": 30 * 60,
        "log_level": "INFO",
        "request_rate_limit_enabled": True,
    },
    "test": {
        "token_ttl_seconds": 60 * 60,
        "bcrypt_rounds": 4,
        "rate_limit_max_attempts": 10,
        "rate_limit_window_seconds": 60,
        "rate_limit_block_seconds": 30 * 60,
        "log_level": "ERROR",
        "request_rate_limit_enabled": False,
    },
    "production": {
        "token_ttl_seconds": 30 * 60,
        "bcrypt_rounds": 14,
        "rate_limit_max_attempts": 3,
        "rate_limit_window_seconds": 10 * 60,
        "rate_limit_block_seconds": 30 * 60,
        "log_level": "WARNING",
        "request_rate_limit_enabled": True,
    },
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator resolves
    profile defaults and enforces production-safety rules at startup.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `secret_key` reads from SECRET_KEY, `app_env` reads from APP_ENV.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    app_env: Profile = "development"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a key or raises, so callers never see "".
    secret_key: str = ""
    # Keys retired by rotation. Tokens signed with these still verify until
    # they expire; new tokens are always signed with secret_key.
    previous_secret_keys: list[str] = []
    log_level: Optional[str] = None

    # ------------------------------------------------------------------
    # Tokens and password hashing
    # ------------------------------------------------------------------

    token_ttl_seconds: Optional[int] = None
    bcrypt_rounds: Optional[int] = None

    # ------------------------------------------------------------------
    # Attempt-based rate limiting (auth/rate_limit.py)
    # ------------------------------------------------------------------

    rate_limit_max_attempts: Optional[int] = None
    rate_limit_window_seconds: Optional[int] = None
    rate_limit_block_seconds: Optional[int] = None

    # ------------------------------------------------------------------
    # Coarse per-IP request cap (slowapi, api/limiter.py)
    # ------------------------------------------------------------------

    request_rate_limit_enabled: Optional[bool] = None
    request_rate_limit: str = "30/minute"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    store_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///authgate.db"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def apply_profile(self) -> "Settings":
        """Fill unset tunables from the active profile and check their ranges."""
        for name, value in _PROFILE_DEFAULTS[self.app_env].items():
            if getattr(self, name) is None:
                setattr(self, name, value)

        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        for name in (
            "token_ttl_seconds",
            "rate_limit_max_attempts",
            "rate_limit_window_seconds",
            "rate_limit_block_seconds",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be a positive integer.")
        return self

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce SECRET_KEY policy [M7].

        Non-production profiles: auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev and tests.

        Production: refuse to start if SECRET_KEY is missing. A random key in
            production would silently invalidate every token on restart.

        All profiles: reject keys shorter than 32 characters [M6], including
            retired keys still accepted for verification.
        """
        if not self.secret_key:
            if self.app_env != "production":
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set APP_ENV=development."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if any(len(k) < 32 for k in self.previous_secret_keys):
            raise ValueError("PREVIOUS_SECRET_KEYS entries must be at least 32 characters.")
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    This is the official FastAPI pattern for config (see FastAPI docs /advanced/settings/).
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
