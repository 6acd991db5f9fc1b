"""
Runtime configuration for nmpolicy.

Settings are read from NMPOLICY_* environment variables (or a .env file):

    NMPOLICY_LOG_LEVEL      logging level (default: WARNING)
    NMPOLICY_LOG_JSON       emit one JSON object per log line (default: false)
    NMPOLICY_MAX_WORKERS    threads used to resolve captures (default: 1)
    NMPOLICY_YAML_SORT_KEYS sort keys in generated YAML (default: true)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine and CLI settings."""

    model_config = SettingsConfigDict(
        env_prefix="NMPOLICY_",
        env_file=".env",
        extra="ignore",
    )

    log_level: str = Field(default="WARNING", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")
    max_workers: int = Field(
        default=1,
        description="Threads used to resolve captures (1 = sequential)",
        ge=1,
        le=64,
    )
    yaml_sort_keys: bool = Field(
        default=True,
        description="Sort mapping keys in generated YAML",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Invalid log level: {v}"
            raise ValueError(msg)
        return level


def get_settings() -> Settings:
    """Read settings from the environment."""
    return Settings()
