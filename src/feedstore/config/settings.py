"""FeedStore settings models.

Storage and logging settings are plain pydantic models grouped under one
``Settings`` object, which reads overrides from ``FEEDSTORE_`` environment
variables (nested fields use ``__``, e.g. ``FEEDSTORE_STORAGE__PATH``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import toml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from feedstore.shared.constants import Config, Logging, Storage

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class StorageSettings(BaseModel):
    """Storage configuration.

    ``backend`` selects the store implementation: ``sqlite`` for the
    transactional store, ``memory`` for the in-memory store. With
    ``ephemeral`` set, the sqlite store ignores ``path`` and keeps its data
    in memory.
    """

    backend: Literal["sqlite", "memory"] = Field(
        default=Storage.BACKEND_SQLITE,
        description="Store implementation (sqlite, memory)",
    )
    path: str = Field(
        default=Storage.DEFAULT_DB_FILENAME,
        min_length=1,
        description="Database file path",
    )
    ephemeral: bool = Field(default=False, description="Discard data when the store closes")
    model: str = Field(
        default=Storage.DEFAULT_MODEL_NAME,
        min_length=1,
        description="Schema model name",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(default=Logging.DEFAULT_LEVEL, description="Logging level")
    file: str | None = Field(default=None, description="Optional JSON log file path")
    console_output: bool = Field(default=True, description="Enable console logging")
    use_rich: bool = Field(default=True, description="Render console logs with rich")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            msg = f"Invalid log level {value!r}, expected one of {', '.join(_LOG_LEVELS)}"
            raise ValueError(msg)
        return level


class Settings(BaseSettings):
    """Top-level FeedStore settings.

    Environment variables take precedence over values passed in explicitly
    (for example from a TOML file).
    """

    model_config = SettingsConfigDict(
        env_prefix=Config.ENV_PREFIX,
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file with environment variable overrides."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to a TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(exclude_none=True)
        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)


__all__ = ["LoggingSettings", "Settings", "StorageSettings"]
