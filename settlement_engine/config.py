"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Search Parameters
    epsilon_cents: int = Field(default=2000, gt=0)
    time_budget_seconds: float = Field(default=60.0, gt=0)
    pruning_enabled: bool = Field(default=True)

    # Storage
    reports_dir: Path = Field(default=Path("./data/reports"))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
