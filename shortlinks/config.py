"""Configuration management for the shortlinks service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram: get_settings()
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
**Step 1: Import**::
    from shortlinks.config import get_settings

**Step 2: Hand settings to the composition root**::
    settings = get_settings()
    engine = build_link_engine(settings)

**Step 3: Override in tests**::
    settings = Settings(LINK_STORE_BACKEND="memory", APP_ENV="test")

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Engine components never call get_settings() themselves; they receive
  the values they need as constructor arguments.
- Strict target validation follows APP_ENV unless STRICT_TARGET_VALIDATION
  is set explicitly.

Classes:
    Settings:  Pydantic model for all configuration values.

"""

__all__ = ["Settings", "get_settings"]

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from shortlinks.enums import StoreBackend


class Settings(BaseSettings):
    APP_NAME: str = "shortlinks"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    # Storage backend
    LINK_STORE_BACKEND: StoreBackend = StoreBackend.SQL

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://shortlinks:shortlinks@db:5432/shortlinks"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_ECHO: bool = False

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_KEY_PREFIX: str = "shortlinks"

    # Short code allocation
    SHORT_CODE_LENGTH: int = 8
    CODE_ALLOCATION_MAX_ATTEMPTS: int = 10

    # Target safety policy; None means "strict in production"
    STRICT_TARGET_VALIDATION: bool | None = None

    # Access counting
    ACCESS_INCREMENT_RETRIES: int = 1
    ACCESS_INCREMENT_RETRY_DELAY_SECONDS: float = 0.05

    # Listing
    LIST_DEFAULT_COUNT: int = 10
    LIST_MAX_COUNT: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    @property
    def strict_targets(self) -> bool:
        if self.STRICT_TARGET_VALIDATION is not None:
            return self.STRICT_TARGET_VALIDATION
        return self.APP_ENV == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
