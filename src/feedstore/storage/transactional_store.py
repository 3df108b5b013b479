"""Feed store backed by a transactional SQL engine.

Each operation runs as one transaction on the store's own session, on the
store's serial worker thread. Engine errors never escape an operation: they
are wrapped into ``RetrievalError``, ``InsertionError`` or ``DeletionError``
and delivered as ``Failure``.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
import weakref
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

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
from feedstore.core.serial_queue import SerialExecutionQueue
from feedstore.core.store import (
    DeletionCompletion,
    FeedStore,
    InsertionCompletion,
    RetrievalCompletion,
)
from feedstore.shared.constants import Storage
from feedstore.shared.errors import (
    DeletionError,
    ErrorCode,
    ErrorContext,
    FeedStoreError,
    InsertionError,
    RetrievalError,
    StoreOpenError,
)
from feedstore.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)
from feedstore.storage.backends import SQLiteBackend, StorageBackend, StorageLocation
from feedstore.storage.mapper import to_domain, to_storable
from feedstore.storage.schema import FeedModel, resolve_model
from feedstore.storage.transaction import TransactionManager

logger = logging.getLogger(__name__)

R = TypeVar("R", RetrieveResult, InsertResult, DeleteResult)


class TransactionalFeedStore(FeedStore):
    """Feed store persisting its snapshot through SQLAlchemy.

    Construction is all-or-nothing: it either returns a usable store or
    raises ``StoreInitializationError`` (``ModelNotFoundError`` or
    ``StoreOpenError``) after releasing whatever it had opened.

    Args:
        location: Storage location, a path, or ``":memory:"``/``"/dev/null"``
            for an ephemeral store
        model: Schema model name or resolved ``FeedModel``
        backend: Engine factory (default: ``SQLiteBackend``)

    Example:
        >>> with TransactionalFeedStore(":memory:") as store:
        ...     store.retrieve().result()
        EmptyCache()
    """

    def __init__(
        self,
        location: StorageLocation | str | Path,
        model: str | FeedModel = Storage.DEFAULT_MODEL_NAME,
        backend: StorageBackend | None = None,
    ) -> None:
        self.location = StorageLocation.from_value(location)
        self.model = resolve_model(model)
        self.backend = backend or SQLiteBackend()

        self._engine, self._session = self._open()
        self._transactions = TransactionManager()
        self._close_lock = threading.Lock()
        self._closed = False
        self._queue = SerialExecutionQueue(f"feed-store-{self.model.name}")
        self._release = functools.partial(
            _release_resources, self._session, self._engine, self.location
        )
        self._finalizer = weakref.finalize(self, self._queue.shutdown, False, self._release)
        logger.info("Opened feed store at %s (model: %s)", self.location, self.model.name)

    def _open(self) -> tuple[Engine, Session]:
        engine: Engine | None = None
        try:
            engine = self.backend.create_engine(self.location)
            self.model.metadata.create_all(engine)
            return engine, Session(engine, autoflush=False)
        except Exception as e:
            if engine is not None:
                engine.dispose()
            error = StoreOpenError(
                ErrorCode.STORE_OPEN_FAILED,
                f"Failed to open feed store at {self.location}: {e}",
                ErrorContext(
                    operation="open",
                    location=str(self.location),
                    additional_data={"model": self.model.name},
                ),
                original_error=e,
            )
            log_operation_error(logger, error)
            raise error from e

    @property
    def is_closed(self) -> bool:
        with self._close_lock:
            return self._closed

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
        """Drain pending operations, then release the session and engine.

        Safe to call more than once.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        self._finalizer.detach()
        self._queue.shutdown(finalizer=self._release)

    def get_stats(self) -> dict[str, dict[str, int]]:
        """Return queue and transaction statistics."""
        return {
            "queue": self._queue.get_stats(),
            "transactions": self._transactions.get_stats(),
        }

    def _retrieve(self) -> RetrieveResult:
        def work(session: Session) -> RetrieveResult:
            feed_class = self.model.feed_class
            record = session.scalars(select(feed_class).order_by(feed_class.id.desc()).limit(1)).first()
            if record is None:
                return EmptyCache()
            snapshot = to_domain(record)
            return FoundCache(feed=snapshot.feed, timestamp=snapshot.timestamp)

        return self._run("retrieve", work, RetrievalError, ErrorCode.CACHE_READ_FAILED)

    def _insert(self, snapshot: CacheSnapshot) -> InsertResult:
        def work(session: Session) -> InsertResult:
            for existing in session.scalars(select(self.model.feed_class)).all():
                session.delete(existing)
            session.flush()
            session.add(to_storable(snapshot))
            session.flush()
            return Success()

        return self._run(
            "insert",
            work,
            InsertionError,
            ErrorCode.CACHE_WRITE_FAILED,
            {"image_count": len(snapshot.feed)},
        )

    def _delete(self) -> DeleteResult:
        def work(session: Session) -> DeleteResult:
            for existing in session.scalars(select(self.model.feed_class)).all():
                session.delete(existing)
            session.flush()
            return Success()

        return self._run("delete", work, DeletionError, ErrorCode.CACHE_DELETE_FAILED)

    def _run(
        self,
        operation: str,
        work: Callable[[Session], R],
        error_class: type[FeedStoreError],
        code: ErrorCode,
        context_data: dict[str, int] | None = None,
    ) -> R | Failure:
        context = ErrorContext(
            operation=operation,
            location=str(self.location),
            additional_data=context_data,
        )
        log_operation_start(logger, operation, context.safe_dict())
        start_time = time.perf_counter()
        try:
            with self._transactions.transaction_scope(self._session, operation) as session:
                result = work(session)
        except Exception as e:
            error = error_class(code, f"Feed store {operation} failed: {e}", context, original_error=e)
            log_operation_error(logger, error)
            return Failure(error)

        log_operation_success(
            logger,
            operation,
            (time.perf_counter() - start_time) * 1000,
            {"result": type(result).__name__},
            context,
        )
        return result

    def __repr__(self) -> str:
        return f"TransactionalFeedStore(location={str(self.location)!r}, model={self.model.name!r})"


def _release_resources(session: Session, engine: Engine, location: StorageLocation) -> None:
    session.close()
    engine.dispose()
    logger.info("Closed feed store at %s", location)


__all__ = ["TransactionalFeedStore"]
