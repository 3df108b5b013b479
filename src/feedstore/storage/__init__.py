"""Transactional storage: schema, mapper, backends and the SQL-backed store."""

from feedstore.storage.backends import (
    FaultInjectingBackend,
    FaultKind,
    SQLiteBackend,
    StorageBackend,
    StorageLocation,
)
from feedstore.storage.schema import FEED_DATA_MODEL, FeedModel, resolve_model
from feedstore.storage.transactional_store import TransactionalFeedStore

__all__ = [
    "FEED_DATA_MODEL",
    "FaultInjectingBackend",
    "FaultKind",
    "FeedModel",
    "SQLiteBackend",
    "StorageBackend",
    "StorageLocation",
    "TransactionalFeedStore",
    "resolve_model",
]
