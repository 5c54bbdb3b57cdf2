"""
Configuration
Runtime settings loaded from LEDGERCLOAK_* environment variables or a .env file.

Only operational knobs live here. Security parameters (KDF iterations,
key and nonce sizes, the forbidden-field set, the recent-activity window)
are code constants, not settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGERCLOAK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Field(
        default=Path("~/.ledgercloak"),
        description="Directory for the nonce counter and the persisted session key",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level name (DEBUG, INFO, WARNING, ...)",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output",
    )
    currency_symbol: str = Field(
        default="$",
        max_length=8,
        description="Symbol prefixed to amounts in prompt text",
    )

    @field_validator("data_dir")
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def nonce_counter_path(self) -> Path:
        return self.data_dir / "nonce-counter.json"

    @property
    def session_key_path(self) -> Path:
        return self.data_dir / "session.key"


@lru_cache
def get_settings() -> Settings:
    """Get the cached settings instance."""
    return Settings()
