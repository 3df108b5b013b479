"""Transaction management for the transactional feed store.

Wraps SQLAlchemy session transactions with commit/rollback handling,
logging keyed by a per-transaction id, and simple statistics.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class TransactionContext:
    """State and metadata of a single transaction."""

    session: Session
    operation: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    start_time: float = field(default_factory=time.perf_counter)
    error: Exception | None = None
    is_completed: bool = False

    @property
    def is_failed(self) -> bool:
        return self.error is not None

    @property
    def duration(self) -> float:
        """Transaction duration in seconds."""
        return time.perf_counter() - self.start_time


class TransactionError(Exception):
    """Raised when commit or rollback is requested without an active transaction."""


class TransactionManager:
    """Runs units of work inside one session transaction.

    A store owns one manager and uses it from its worker thread only, so
    transactions never nest. The lock protects the statistics, which may be
    read from any thread.
    """

    def __init__(self) -> None:
        self._current: TransactionContext | None = None
        self._lock = threading.RLock()
        self._stats = {
            "total_transactions": 0,
            "successful_commits": 0,
            "rollbacks": 0,
        }

    def begin(self, session: Session, operation: str | None = None) -> TransactionContext:
        """Begin a new transaction on ``session``.

        Raises:
            TransactionError: If a transaction is already active
        """
        with self._lock:
            if self._current is not None:
                msg = f"Transaction {self._current.id} is still active"
                raise TransactionError(msg)

            context = TransactionContext(session=session, operation=operation)
            if not session.in_transaction():
                session.begin()
            self._current = context
            self._stats["total_transactions"] += 1

        logger.debug("Transaction %s started (operation: %s)", context.id, operation)
        return context

    def commit(self) -> None:
        """Commit the active transaction.

        Raises:
            TransactionError: If no transaction is active
        """
        with self._lock:
            context = self._require_current("commit")
            try:
                context.session.commit()
            except Exception as e:
                context.error = e
                logger.error("Failed to commit transaction %s: %s", context.id, e)
                raise
            self._stats["successful_commits"] += 1
            context.is_completed = True
            self._current = None

        logger.debug(
            "Transaction %s committed (duration: %.3fs)",
            context.id,
            context.duration,
        )

    def rollback(self, error: Exception | None = None) -> None:
        """Roll back the active transaction, if any."""
        with self._lock:
            context = self._current
            if context is None:
                logger.warning("No active transaction to rollback")
                return

            context.error = error
            try:
                context.session.rollback()
            finally:
                self._stats["rollbacks"] += 1
                context.is_completed = True
                self._current = None

        logger.warning(
            "Transaction %s rolled back (duration: %.3fs, operation: %s, reason: %s: %s)",
            context.id,
            context.duration,
            context.operation,
            type(error).__name__ if error else None,
            error,
        )

    def is_active(self) -> bool:
        with self._lock:
            return self._current is not None

    def get_stats(self) -> dict[str, Any]:
        """Return transaction statistics."""
        with self._lock:
            stats: dict[str, Any] = dict(self._stats)
            stats["active_transactions"] = 0 if self._current is None else 1
            return stats

    def reset_stats(self) -> None:
        with self._lock:
            for key in self._stats:
                self._stats[key] = 0

    @contextmanager
    def transaction_scope(
        self,
        session: Session,
        operation: str | None = None,
    ) -> Generator[Session, None, None]:
        """Context manager for one transaction.

        Commits when the block completes and rolls back, then re-raises,
        when it raises. A failing commit is rolled back as well.

        Example:
            with manager.transaction_scope(session, "insert") as tx_session:
                tx_session.add(record)
        """
        self.begin(session, operation)
        try:
            yield session
            self.commit()
        except Exception as e:
            self.rollback(error=e)
            raise

    def _require_current(self, action: str) -> TransactionContext:
        if self._current is None:
            msg = f"No active transaction to {action}"
            raise TransactionError(msg)
        return self._current


__all__ = ["TransactionContext", "TransactionError", "TransactionManager"]
