"""Configuration management for the alias registry service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from alias_registry.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    backend = settings.STORE_BACKEND

**Step 3 — Build an isolated configuration (tests)**::
    settings = Settings(STORE_BACKEND=StoreBackend.MEMORY, ALIAS_LENGTH=8)

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- List values (RESERVED_ALIASES, CORS_ALLOWED_ORIGINS) are read from JSON in the environment.
- Alias policy values are validated against each other on construction.

Classes:
    Settings:  Pydantic model for all configuration values.
"""

__all__ = ["Settings", "get_settings"]

import string
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from alias_registry.enums import StoreBackend

# Characters a generated alias may use; mirrors the custom alias pattern.
ALIAS_SAFE_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-_")


class Settings(BaseSettings):
    APP_NAME: str = "alias-registry"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    # Backing store
    STORE_BACKEND: StoreBackend = StoreBackend.SQL
    DATABASE_URL: str = "postgresql+asyncpg://aliasregistry:aliasregistry@db:5432/aliasregistry"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_KEY_PREFIX: str = "aliases"

    # Alias policy
    ALIAS_ALPHABET: str = string.ascii_letters + string.digits
    ALIAS_LENGTH: int = Field(default=6, ge=1)
    ALIAS_MIN_LENGTH: int = Field(default=3, ge=1)
    ALIAS_MAX_LENGTH: int = Field(default=50, ge=1, le=64)
    ALIAS_MAX_RETRIES: int = Field(default=10, ge=1)
    RESERVED_ALIASES: list[str] = [
        "shorten",
        "urls",
        "health",
        "metrics",
        "docs",
        "redoc",
        "api",
    ]
    URL_MAX_LENGTH: int = Field(default=2048, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_alias_bounds(self) -> "Settings":
        if self.ALIAS_MIN_LENGTH > self.ALIAS_MAX_LENGTH:
            raise ValueError("ALIAS_MIN_LENGTH must not exceed ALIAS_MAX_LENGTH")
        if not self.ALIAS_MIN_LENGTH <= self.ALIAS_LENGTH <= self.ALIAS_MAX_LENGTH:
            raise ValueError("ALIAS_LENGTH must lie within ALIAS_MIN_LENGTH..ALIAS_MAX_LENGTH")
        if len(set(self.ALIAS_ALPHABET)) < 2:
            raise ValueError("ALIAS_ALPHABET needs at least two distinct characters")
        if not set(self.ALIAS_ALPHABET) <= ALIAS_SAFE_CHARACTERS:
            raise ValueError("ALIAS_ALPHABET may only contain letters, digits, '-' and '_'")
        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()
