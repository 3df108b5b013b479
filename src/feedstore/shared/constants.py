"""Shared constants for FeedStore."""

from __future__ import annotations

from typing import Final


class Storage:
    """Storage location and engine defaults."""

    DEFAULT_MODEL_NAME: Final[str] = "FeedDataModel"
    DEFAULT_DB_FILENAME: Final[str] = "feed_cache.sqlite3"
    EPHEMERAL_ALIASES: Final[tuple[str, ...]] = (":memory:", "/dev/null")
    SQLITE_URL_PREFIX: Final[str] = "sqlite:///"
    SQLITE_MEMORY_URL: Final[str] = "sqlite://"
    BUSY_TIMEOUT_SECONDS: Final[float] = 10.0

    BACKEND_SQLITE: Final[str] = "sqlite"
    BACKEND_MEMORY: Final[str] = "memory"


class Tables:
    """Table names of the backing schema."""

    FEED: Final[str] = "feed_cache"
    IMAGES: Final[str] = "feed_cache_images"


class Queue:
    """Serial execution queue defaults."""

    WORKER_NAME_PREFIX: Final[str] = "feedstore"


class Logging:
    """Logging defaults."""

    LOGGER_NAME: Final[str] = "feedstore"
    DEFAULT_LEVEL: Final[str] = "INFO"


class Config:
    """Configuration file and environment defaults."""

    ENV_PREFIX: Final[str] = "FEEDSTORE_"
    ENV_CONFIG_PATH: Final[str] = "FEEDSTORE_CONFIG"
    DEFAULT_CONFIG_FILENAME: Final[str] = "feedstore.toml"
