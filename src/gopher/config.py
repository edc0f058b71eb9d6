"""Configuration management for Gopher."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class GopherSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    copilot_path: str | None = Field(default=None, validation_alias="COPILOT_PATH")
    state_dir: Path = Field(default=Path(".copilot-fix-state"), validation_alias="GOPHER_STATE_DIR")
    workflow_paths: Annotated[tuple[Path, ...], NoDecode] = Field(
        default=(), validation_alias="GOPHER_WORKFLOW_PATHS"
    )
    log_level: str = Field(default="INFO", validation_alias="GOPHER_LOG_LEVEL")
    poll_interval: float = Field(default=0.2, gt=0, validation_alias="GOPHER_POLL_INTERVAL")
    launch_delay: float = Field(default=1.0, ge=0, validation_alias="GOPHER_LAUNCH_DELAY")

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}; use one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("workflow_paths", mode="before")
    @classmethod
    def _split_workflow_paths(cls, value):
        if not value:
            return ()
        entries = value.split(os.pathsep) if isinstance(value, str) else value
        return tuple(Path(str(entry).strip()) for entry in entries if str(entry).strip())

    @property
    def log_file(self) -> Path:
        return self.state_dir / "gopher.log"


@lru_cache(maxsize=1)
def get_settings() -> GopherSettings:
    """Return cached settings instance."""

    settings = GopherSettings()
    settings.state_dir = settings.state_dir.expanduser().resolve()
    settings.workflow_paths = tuple(path.expanduser().resolve() for path in settings.workflow_paths)
    return settings


__all__ = ["GopherSettings", "get_settings"]
