"""Configuration settings module."""

from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from rollup_tui.core.constants import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_FRAME_INTERVAL,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RPC_TIMEOUT,
    DEFAULT_WINDOW_SECONDS,
    ENV_PATH,
    LOG_PATH,
    NETWORKS_PATH,
)
from rollup_tui.core.errors import ConfigError


class Settings(BaseSettings):
    """Dashboard settings loaded from the environment and the .env file."""

    networks_file: Path = NETWORKS_PATH
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    frame_interval: float = Field(default=DEFAULT_FRAME_INTERVAL, gt=0)
    request_timeout: float = Field(default=DEFAULT_RPC_TIMEOUT, gt=0)
    failure_threshold: int = Field(default=DEFAULT_FAILURE_THRESHOLD, ge=1)
    max_backoff: float = Field(default=DEFAULT_MAX_BACKOFF, gt=0)
    window_seconds: int = Field(default=DEFAULT_WINDOW_SECONDS, ge=1)
    shutdown_grace: float = Field(default=1.0, ge=0)
    log_file: Path = LOG_PATH
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="ROLLUP_TUI_",
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **values):
        """Initialize Settings and load environment variables."""
        load_dotenv(ENV_PATH, override=False)
        super().__init__(**values)


def load_settings(**overrides) -> Settings:
    """Build Settings, ignoring unset overrides and raising ConfigError if invalid."""
    values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in item['loc'])}: {item['msg']}" for item in e.errors()
        )
        raise ConfigError(f"Invalid settings: {problems}") from e
