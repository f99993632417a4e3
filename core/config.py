"""
core/config.py -- Centralized gateway configuration via pydantic-settings.

All environment variable reads for AuthGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. Config is
      read once at startup; there is no hot-reload.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY). Type coercion and validation are built in.
      AUTH_READ=yes / AUTH_WRITE=no work because pydantic's bool parser accepts
      yes/no/on/off as well as true/false.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Implements the DEBUG-conditional
      SECRET_KEY logic: dev mode generates a key with warning, production mode
      refuses to start without one.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/ or resources/.
"""

import logging
import re
import secrets
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authgate.config")

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)

_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


def parse_duration(value: str | int) -> int:
    """Convert a token lifetime like "24h", "30m" or "3600" into whole seconds.

    A bare number is seconds. Raises ValueError for anything unparseable or for
    a lifetime that rounds down to zero.
    """
    if isinstance(value, int):
        seconds = value
    else:
        match = _DURATION_RE.match(value)
        if match is None:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        seconds = int(float(amount) * _UNIT_SECONDS[(unit or "s").lower()])
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    host: str = "0.0.0.0"  # nosec B104 -- bind address for the container
    port: int = 8000
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    db_file: str = "db.json"
    upload_folder: str = "public/"
    api_prefix: str = "/api"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    auth_read: bool = False
    auth_write: bool = True
    jwt_expiration: str = "24h"
    # bcrypt cost factor. SALT is the historical variable name.
    salt_rounds: int = Field(default=10, ge=4, le=31, validation_alias=AliasChoices("SALT", "SALT_ROUNDS"))
    hash_salt_per_password: bool = False
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("jwt_expiration")
    @classmethod
    def validate_jwt_expiration(cls, value: str) -> str:
        parse_duration(value)
        return value

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, value: str) -> str:
        """Force a single leading slash and no trailing slash ("api/" -> "/api")."""
        value = "/" + value.strip("/")
        if value == "/":
            raise ValueError("API_PREFIX must not be the root path.")
        return value

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Issued tokens will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def token_lifetime_seconds(self) -> int:
        return parse_duration(self.jwt_expiration)


@lru_cache
def get_settings() -> Settings:
    """Return the gateway Settings singleton.

    All modules should call get_settings() rather than constructing Settings()
    directly. In tests: call get_settings.cache_clear() between test cases if
    you need to inject different environment variables.
    """
    return Settings()
