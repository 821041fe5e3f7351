"""Process-level settings read from the environment."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class RuntimeSettings(BaseSettings):
    """Options controlling where the client writes its files."""

    model_config = SettingsConfigDict(
        env_prefix="SIGA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directories
    config_dir: str | None = None
    log_dir: str | None = None
    session_file: str | None = None

    # Logs
    log_level: str = "INFO"
    log_rotate_mb: int = 5
    log_retention_days: int = 7


@lru_cache()
def get_runtime_settings() -> RuntimeSettings:
    """Return a cached RuntimeSettings instance."""
    return RuntimeSettings()
