"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Asset cache settings loaded from environment variables (ASSET_*)."""

    model_config = SettingsConfigDict(
        env_prefix="ASSET_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Eviction timing, in clock units (milliseconds by default)
    sweep_interval_ms: int = 30 * 1000        # Run the eviction pass every 30s
    remember_window_ms: int = 2 * 60 * 1000   # Evict entries idle for 2 minutes

    # Remote asset host
    asset_base_url: str = "http://localhost:8000/data/"
    request_timeout_seconds: float = 30.0
    asset_host_token: Optional[str] = None

    # Logging
    log_level: str = "INFO"


settings = Settings()
