"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- Supports multiple environments (production, staging, dev)
- Defaults to SQLite (file-based) for easy local development
- Remote log shipping is optional: without LOG_API_URL events stay local
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "settings"]

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class EnvSettingsOptions(Enum):
    """Environment options for deployment."""
    production = "production"
    staging = "staging"
    development = "dev"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    ENV_SETTING: EnvSettingsOptions = Field(
        default=EnvSettingsOptions.development,
        description="Environment setting (production, staging, dev)"
    )

    # Database Configuration
    # For SQLite: sqlite+aiosqlite:///./shortlink.db (default)
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./shortlink.db",
        description="Database connection string"
    )

    # Application Configuration
    BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL for generating short links"
    )
    HOST: str = Field(default="0.0.0.0", description="Interface the server binds to")
    PORT: int = Field(default=8000, description="Port the server listens on")

    # Shortcode Lifecycle Configuration
    DEFAULT_VALIDITY_MINUTES: int = Field(
        default=30,
        description="Validity window applied when a request does not supply one"
    )
    MAX_VALIDITY_MINUTES: int = Field(
        default=525600,
        description="Largest accepted validity window (one year)"
    )
    SHORTCODE_LENGTH: int = Field(
        default=7,
        description="Length of generated shortcodes"
    )
    SHORTCODE_MAX_ATTEMPTS: int = Field(
        default=10,
        description="How many random candidates to try before giving up"
    )
    CLEANUP_INTERVAL_SECONDS: int = Field(
        default=3600,
        description="Period of the expired-URL sweep"
    )

    # Telemetry Configuration
    LOG_API_URL: Optional[str] = Field(
        default=None,
        description="Remote log endpoint; events are only logged locally when unset"
    )
    LOG_API_TOKEN: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the remote log endpoint"
    )
    LOG_API_TIMEOUT: float = Field(
        default=5.0,
        description="Seconds to wait for the remote log endpoint"
    )
    LOG_LEVEL: str = Field(default="INFO", description="Local logging level")

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(
        default=True,
        description="Enable per-IP rate limiting on the public endpoints"
    )


settings = Settings()
