"""Harness configuration settings."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HarnessSettings(BaseSettings):
    """Harness settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_prefix="REPLBENCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Test matrix
    base_resource_id: int = Field(default=550, ge=0)
    repetitions: int = Field(default=1, ge=1)
    quick_mode_factor: int = Field(default=10, ge=1)

    # HTTP client
    request_timeout: float = 10.0  # seconds
    max_connections: int = 1000

    # Readiness polling
    log_poll_interval: float = 0.1  # seconds
    state_poll_interval: float = 0.5  # seconds
    ready_timeout: Optional[float] = None  # seconds, None waits forever

    # Logging
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Global settings instance
_settings: Optional[HarnessSettings] = None


def get_settings() -> HarnessSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = HarnessSettings()
    return _settings


def init_settings(**kwargs) -> HarnessSettings:
    """Initialize settings with custom values."""
    global _settings
    _settings = HarnessSettings(**kwargs)
    return _settings
