"""
Pytest configuration and shared fixtures for FeedStore tests.

This module provides feed fixtures, temporary store locations and store
factories that close every store they create.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from feedstore.config.loader import reset_config
from feedstore.core.models import FeedImage
from feedstore.storage.backends import FaultInjectingBackend, StorageBackend
from feedstore.storage.transactional_store import TransactionalFeedStore
from helpers.factories import make_feed


@pytest.fixture
def feed() -> list[FeedImage]:
    """A feed of three unique images."""
    return make_feed(3)


@pytest.fixture
def other_feed() -> list[FeedImage]:
    return make_feed(1)


@pytest.fixture
def timestamp() -> datetime:
    """A timezone-aware timestamp with microseconds."""
    return datetime(2024, 5, 17, 9, 30, 12, 345678, tzinfo=timezone.utc)


@pytest.fixture
def later_timestamp(timestamp: datetime) -> datetime:
    return timestamp + timedelta(days=1)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Path of a database file that does not exist yet."""
    return tmp_path / "stores" / "feed-store.sqlite3"


@pytest.fixture
def make_store() -> Generator[Callable[..., TransactionalFeedStore], None, None]:
    """Factory creating transactional stores that are closed after the test.

    Yields:
        Callable taking a location and optional ``backend``/``model``.
    """
    stores: list[TransactionalFeedStore] = []

    def _make(location, backend: StorageBackend | None = None, **kwargs) -> TransactionalFeedStore:
        store = TransactionalFeedStore(location, backend=backend, **kwargs)
        stores.append(store)
        return store

    yield _make

    for store in stores:
        store.close()


@pytest.fixture
def faulty_backend() -> FaultInjectingBackend:
    """Fault injecting backend with no faults armed."""
    return FaultInjectingBackend()


@pytest.fixture
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[Path, None, None]:
    """Run with no FEEDSTORE_ environment and an empty working directory."""
    for name in ("FEEDSTORE_CONFIG", "FEEDSTORE_STORAGE__BACKEND", "FEEDSTORE_STORAGE__PATH",
                 "FEEDSTORE_STORAGE__EPHEMERAL", "FEEDSTORE_STORAGE__MODEL",
                 "FEEDSTORE_LOGGING__LEVEL", "FEEDSTORE_LOGGING__FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield tmp_path
    reset_config()


@pytest.fixture
def restore_feedstore_logger() -> Generator[logging.Logger, None, None]:
    """Restore the package logger after a test reconfigures it."""
    feedstore_logger = logging.getLogger("feedstore")
    handlers = list(feedstore_logger.handlers)
    level = feedstore_logger.level
    propagate = feedstore_logger.propagate

    yield feedstore_logger

    for handler in feedstore_logger.handlers:
        if handler not in handlers:
            handler.close()
    feedstore_logger.handlers = handlers
    feedstore_logger.setLevel(level)
    feedstore_logger.propagate = propagate
