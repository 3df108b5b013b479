"""FeedStore: a single-slot persistent cache for feed images."""

from feedstore.core import (
    CacheSnapshot,
    EmptyCache,
    Failure,
    FeedImage,
    FeedStore,
    FoundCache,
    InMemoryFeedStore,
    Success,
)
from feedstore.factory import create_feed_store
from feedstore.shared.errors import (
    DeletionError,
    ErrorCode,
    FeedStoreError,
    InsertionError,
    ModelNotFoundError,
    RetrievalError,
    StoreClosedError,
    StoreInitializationError,
    StoreOpenError,
)
from feedstore.storage import StorageLocation, TransactionalFeedStore

__version__ = "0.1.0"

__all__ = [
    "CacheSnapshot",
    "DeletionError",
    "EmptyCache",
    "ErrorCode",
    "Failure",
    "FeedImage",
    "FeedStore",
    "FeedStoreError",
    "FoundCache",
    "InMemoryFeedStore",
    "InsertionError",
    "ModelNotFoundError",
    "RetrievalError",
    "StorageLocation",
    "StoreClosedError",
    "StoreInitializationError",
    "StoreOpenError",
    "Success",
    "TransactionalFeedStore",
    "__version__",
    "create_feed_store",
]
