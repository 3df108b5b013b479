"""Store contract for the feed cache.

A ``FeedStore`` holds at most one ``CacheSnapshot``. Every operation is
asynchronous: it returns a ``Future`` that resolves exactly once with a
result object, and the optional ``completion`` callback receives the same
result on the store's worker thread. Operations on one instance run
serially, in submission order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from datetime import datetime
from types import TracebackType

from feedstore.core.models import (
    DeleteResult,
    FeedImage,
    InsertResult,
    RetrieveResult,
)

RetrievalCompletion = Callable[[RetrieveResult], None]
InsertionCompletion = Callable[[InsertResult], None]
DeletionCompletion = Callable[[DeleteResult], None]


class FeedStore(ABC):
    """Abstract persistence contract for the single-slot feed cache."""

    @abstractmethod
    def retrieve(
        self,
        completion: RetrievalCompletion | None = None,
    ) -> Future[RetrieveResult]:
        """Read the current snapshot.

        Completes with ``EmptyCache``, ``FoundCache`` or ``Failure``. Has no
        side effects on the stored state.
        """

    @abstractmethod
    def insert(
        self,
        feed: Sequence[FeedImage],
        timestamp: datetime,
        completion: InsertionCompletion | None = None,
    ) -> Future[InsertResult]:
        """Replace the current snapshot with ``feed`` and ``timestamp``.

        Completes with ``Success`` or ``Failure``. A failed insert never
        leaves a partially written snapshot behind.
        """

    @abstractmethod
    def delete(
        self,
        completion: DeletionCompletion | None = None,
    ) -> Future[DeleteResult]:
        """Remove the current snapshot, succeeding when there is none."""

    @abstractmethod
    def close(self) -> None:
        """Finish pending operations and release resources."""

    def __enter__(self) -> FeedStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = [
    "DeletionCompletion",
    "FeedStore",
    "InsertionCompletion",
    "RetrievalCompletion",
]
