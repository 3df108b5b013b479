"""In-memory feed store.

Keeps the snapshot in process memory. It follows the same serial completion
shape as the transactional store and always succeeds, which makes it the
reference implementation for the store contract tests.
"""

from __future__ import annotations

import weakref
from collections.abc import Sequence
from concurrent.futures import Future
from datetime import datetime

from feedstore.core.models import (
    CacheSnapshot,
    DeleteResult,
    EmptyCache,
    FeedImage,
    FoundCache,
    InsertResult,
    RetrieveResult,
    Success,
)
from feedstore.core.serial_queue import SerialExecutionQueue
from feedstore.core.store import (
    DeletionCompletion,
    FeedStore,
    InsertionCompletion,
    RetrievalCompletion,
)


class InMemoryFeedStore(FeedStore):
    """Feed store backed by a single in-memory slot."""

    def __init__(self) -> None:
        self._cache: CacheSnapshot | None = None
        self._queue = SerialExecutionQueue("in-memory-feed-store")
        self._finalizer = weakref.finalize(self, self._queue.shutdown, False)

    def retrieve(
        self,
        completion: RetrievalCompletion | None = None,
    ) -> Future[RetrieveResult]:
        return self._queue.submit(self._retrieve, completion)

    def insert(
        self,
        feed: Sequence[FeedImage],
        timestamp: datetime,
        completion: InsertionCompletion | None = None,
    ) -> Future[InsertResult]:
        snapshot = CacheSnapshot.of(feed, timestamp)
        return self._queue.submit(lambda: self._insert(snapshot), completion)

    def delete(
        self,
        completion: DeletionCompletion | None = None,
    ) -> Future[DeleteResult]:
        return self._queue.submit(self._delete, completion)

    def close(self) -> None:
        self._finalizer.detach()
        self._queue.shutdown()

    def _retrieve(self) -> RetrieveResult:
        if self._cache is None:
            return EmptyCache()
        return FoundCache(feed=self._cache.feed, timestamp=self._cache.timestamp)

    def _insert(self, snapshot: CacheSnapshot) -> InsertResult:
        self._cache = snapshot
        return Success()

    def _delete(self) -> DeleteResult:
        self._cache = None
        return Success()
