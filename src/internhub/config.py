"""Application configuration via pydantic-settings.

Reads from .env file or environment variables. All settings are validated
at startup - if a required setting is missing, the app fails fast with a
clear error message.

Usage:
    from internhub.config import get_settings
    settings = get_settings()
    print(settings.database_url)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the InternHub API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = True
    app_log_level: str = "DEBUG"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    cors_origins: str = "*"

    # --- Database (PostgreSQL) ---
    database_url: str = (
        "postgresql+asyncpg://internhub:internhub_dev"
        "@localhost:5432/internhub"
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_echo_sql: bool = False

    # --- Auth (tokens are issued by the auth service) ---
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # --- Notifications ---
    notification_queue_size: int = 1000
    notification_drain_timeout_seconds: float = 5.0

    # --- Pagination ---
    default_page_size: int = 10
    max_page_size: int = 50

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the application settings."""
    return Settings()
