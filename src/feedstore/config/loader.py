"""Settings loader and singleton manager.

Settings come from an optional TOML file with ``FEEDSTORE_`` environment
variables layered on top. ``SettingsLoader`` caches the loaded instance
behind a lock so every store created by the factory sees the same settings.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from pydantic import ValidationError
from toml import TomlDecodeError

from feedstore.config.settings import Settings
from feedstore.shared.constants import Config
from feedstore.shared.errors import create_config_error

logger = logging.getLogger(__name__)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML file or the environment.

    Args:
        config_path: Optional path of a TOML file. When omitted, the path
            named by ``FEEDSTORE_CONFIG`` is used, then ``feedstore.toml`` in
            the working directory if it exists.

    Returns:
        The loaded settings

    Raises:
        ApplicationError: If the file is missing, unreadable or invalid
    """
    path = _resolve_config_path(config_path)
    if path is not None:
        logger.debug("Loading settings from %s", path)
    return _build(path)


def _resolve_config_path(config_path: str | Path | None) -> Path | None:
    if config_path is not None:
        return Path(config_path)

    env_path = os.environ.get(Config.ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)

    default_path = Path(Config.DEFAULT_CONFIG_FILENAME)
    if default_path.exists():
        return default_path
    return None


def _build(path: Path | None) -> Settings:
    try:
        return Settings() if path is None else Settings.from_toml_file(path)
    except FileNotFoundError as e:
        raise create_config_error(
            f"Configuration file not found: {path}",
            config_key="config_path",
            operation="load_settings",
            original_error=e,
        ) from e
    except (TomlDecodeError, OSError) as e:
        raise create_config_error(
            f"Failed to read configuration file {path}: {e}",
            config_key="config_path",
            operation="load_settings",
            original_error=e,
        ) from e
    except ValidationError as e:
        first = e.errors()[0]
        raise create_config_error(
            f"Invalid configuration: {e.error_count()} error(s), first: {first['msg']}",
            config_key=".".join(str(part) for part in first["loc"]),
            operation="load_settings",
            original_error=e,
        ) from e


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking so the common path needs no lock.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def __init__(self, config_path: str | Path | None = None) -> None:
        self.config_path = config_path

    def get_config(self) -> Settings:
        """Return the cached settings, loading them on first use."""
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings(self.config_path)
        return self._instance

    def reload_config(self) -> Settings:
        """Load the settings again and replace the cached instance."""
        with self._lock:
            self._instance = load_settings(self.config_path)
        return self._instance

    def reset(self) -> None:
        """Drop the cached instance."""
        with self._lock:
            self._instance = None


_loader = SettingsLoader()


def get_config() -> Settings:
    """Return the process-wide settings instance."""
    return _loader.get_config()


def reload_config() -> Settings:
    return _loader.reload_config()


def reset_config() -> None:
    _loader.reset()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
