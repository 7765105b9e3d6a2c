"""
Runtime settings read from the environment.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Environment the installer resolves its roots from."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    home: Path = Field(default_factory=Path.home, validation_alias="HOME")
    codex_home: Path | None = Field(default=None, validation_alias="CODEX_HOME")
    claude_config_dir: Path | None = Field(
        default=None, validation_alias="CLAUDE_CONFIG_DIR"
    )
    log_level: str = Field(
        default="WARNING",
        validation_alias="SKILLDEPLOY_LOG_LEVEL",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept a standard logging level name in any case."""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"SKILLDEPLOY_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


def get_settings() -> Settings:
    # Built per call so a changed environment is always picked up.
    return Settings()
