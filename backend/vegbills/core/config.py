"""Simple configuration management.

This module defines a ``Settings`` class that reads configuration
values from environment variables and provides sensible defaults.
``.env`` support is implemented by loading files from the repository
root in a defined order.  You can override any value via environment
variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv, find_dotenv

# -----------------------------------------------------------------------------
# .env loading
#
# Prefer a .env in the repository root but allow fallback to whatever
# python-dotenv discovers from the current working directory.  Files are
# loaded in order without overriding already-set variables.

_THIS_FILE = Path(__file__).resolve()
_REPO_ROOT = _THIS_FILE.parents[3]
_ROOT_ENV = _REPO_ROOT / ".env"

_candidate_envs: list[str] = []
if _ROOT_ENV.exists():
    _candidate_envs.append(str(_ROOT_ENV))

_FOUND_ENV = find_dotenv(usecwd=True)
if _FOUND_ENV and _FOUND_ENV not in _candidate_envs:
    _candidate_envs.append(_FOUND_ENV)

for _env_path in _candidate_envs:
    load_dotenv(dotenv_path=_env_path, override=False)


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from the environment with sensible defaults.  Any
    attribute defined here can be overridden by setting the corresponding
    environment variable.
    """

    model_config = SettingsConfigDict(
        env_file=tuple(_candidate_envs) if _candidate_envs else (".env",),
        case_sensitive=True,
        extra="allow",
    )

    # API Settings
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Vegetable Bills API"
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Database
    DATABASE_URL: Optional[str] = Field(default=None)
    # Local SQLite file used when no DATABASE_URL is configured
    DB_DEV_FALLBACK_SQLITE: bool = Field(default=True)
    SQLITE_FALLBACK_URL: str = Field(default="sqlite+aiosqlite:///./vegbills.db")
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0)

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    CACHE_TIMEOUT_SECONDS: float = Field(default=2.0)
    CACHE_TTL_SECONDS: int = Field(default=3600)

    # Pricing
    PRICE_DECIMALS: int = Field(default=2)
    RECONCILE_MAX_ATTEMPTS: int = Field(default=3)

    # Rate limiting for GET /api/bills (sliding window per caller)
    BILLS_RATE_LIMIT: int = Field(default=100)
    BILLS_RATE_WINDOW_SECONDS: float = Field(default=60.0)
    RATE_LIMIT_MAX_CLIENTS: int = Field(default=10_000)

    # CORS
    BACKEND_CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
    )

    # Administrative bulk delete (DELETE /api/bills/test-provider)
    ADMIN_PROVIDER_NAME: str = Field(default="Test")

    # Sample data
    SEED_SAMPLE_DATA: bool = Field(default=False)
    SEED_PROVIDER_COUNT: int = Field(default=5)
    SEED_BILL_COUNT: int = Field(default=100)

    # Sentry
    SENTRY_DSN: Optional[str] = Field(default=None)
    SENTRY_TRACES_SAMPLE_RATE: float = Field(default=0.0)
    SENTRY_RELEASE: Optional[str] = Field(default=None)

    @property
    def is_development(self) -> bool:
        return (self.ENVIRONMENT or "development").lower() == "development"


# Instantiate global settings
settings = Settings()


def get_database_url() -> Optional[str]:
    """Return the configured database URL, consulting the raw environment last."""
    return settings.DATABASE_URL or os.getenv("DATABASE_URL")
