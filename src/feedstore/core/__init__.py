"""Core domain: models, the store contract and the serial execution queue."""

from feedstore.core.in_memory_store import InMemoryFeedStore
from feedstore.core.models import (
    CacheSnapshot,
    DeleteResult,
    EmptyCache,
    Failure,
    FeedImage,
    FoundCache,
    InsertResult,
    RetrieveResult,
    Success,
)
from feedstore.core.serial_queue import SerialExecutionQueue, TaskQueue
from feedstore.core.store import FeedStore

__all__ = [
    "CacheSnapshot",
    "DeleteResult",
    "EmptyCache",
    "Failure",
    "FeedImage",
    "FeedStore",
    "FoundCache",
    "InMemoryFeedStore",
    "InsertResult",
    "RetrieveResult",
    "SerialExecutionQueue",
    "Success",
    "TaskQueue",
]
