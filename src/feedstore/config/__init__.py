"""Configuration for FeedStore."""

from feedstore.config.loader import (
    SettingsLoader,
    get_config,
    load_settings,
    reload_config,
    reset_config,
)
from feedstore.config.settings import LoggingSettings, Settings, StorageSettings

__all__ = [
    "LoggingSettings",
    "Settings",
    "SettingsLoader",
    "StorageSettings",
    "get_config",
    "load_settings",
    "reload_config",
    "reset_config",
]
