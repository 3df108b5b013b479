"""Build feed stores from configuration."""

from __future__ import annotations

import logging

from feedstore.config.loader import get_config
from feedstore.config.settings import Settings, StorageSettings
from feedstore.core.in_memory_store import InMemoryFeedStore
from feedstore.core.store import FeedStore
from feedstore.shared.constants import Storage
from feedstore.shared.logging import setup_structured_logger
from feedstore.storage.backends import StorageBackend, StorageLocation
from feedstore.storage.transactional_store import TransactionalFeedStore

logger = logging.getLogger(__name__)


def storage_location(storage: StorageSettings) -> StorageLocation:
    """Return the location described by the storage settings."""
    if storage.ephemeral:
        return StorageLocation.ephemeral()
    return StorageLocation.from_value(storage.path)


def configure_logging(settings: Settings) -> logging.Logger:
    """Set up the package logger from the logging settings."""
    logging_settings = settings.logging
    feedstore_logger = setup_structured_logger(
        level=logging_settings.level,
        log_file=logging_settings.file,
        use_rich_console=logging_settings.use_rich,
    )
    if not logging_settings.console_output:
        for handler in list(feedstore_logger.handlers):
            if not isinstance(handler, logging.FileHandler):
                feedstore_logger.removeHandler(handler)
    return feedstore_logger


def create_feed_store(
    settings: Settings | None = None,
    backend: StorageBackend | None = None,
) -> FeedStore:
    """Create the store selected by ``settings.storage.backend``.

    Args:
        settings: Settings to use (default: the process-wide settings)
        backend: Engine factory for the transactional store

    Returns:
        An open ``TransactionalFeedStore`` or ``InMemoryFeedStore``

    Raises:
        StoreInitializationError: If the transactional store cannot be opened
    """
    settings = settings or get_config()
    storage = settings.storage

    if storage.backend == Storage.BACKEND_MEMORY:
        logger.debug("Creating in-memory feed store")
        return InMemoryFeedStore()

    return TransactionalFeedStore(
        storage_location(storage),
        model=storage.model,
        backend=backend,
    )


__all__ = ["configure_logging", "create_feed_store", "storage_location"]
