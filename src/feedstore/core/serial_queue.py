"""
Serial execution queue.

Every store instance owns one ``SerialExecutionQueue``: a FIFO of submitted
tasks drained by a single dedicated worker thread. Tasks run one at a time
in submission order and each task's completion callback runs on the worker
before the next task is dequeued.
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from feedstore.shared.constants import Queue
from feedstore.shared.errors import ErrorCode, ErrorContext, StoreClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()
_queue_ids = itertools.count(1)


@dataclass
class QueueStats:
    """Statistics for queue operations."""

    size: int
    total_added: int
    total_removed: int
    max_size_reached: int


class TaskQueue:
    """
    Thread-safe unbounded FIFO queue.

    Features:
    - Thread-safe operations using a condition variable
    - Blocking ``get`` with timeout support
    - Statistics tracking
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._not_empty = threading.Condition(self._lock)

        self._queue: deque[Any] = deque()

        self._total_added = 0
        self._total_removed = 0
        self._max_size_reached = 0

    def put(self, item: Any) -> None:
        """
        Add an item to the queue. Never blocks.

        Args:
            item: Item to add to the queue

        Raises:
            ValueError: If item is None
        """
        if item is None:
            msg = "Cannot add None to queue"
            raise ValueError(msg)

        with self._lock:
            self._queue.append(item)
            self._total_added += 1
            self._max_size_reached = max(self._max_size_reached, len(self._queue))
            self._not_empty.notify()

    def get(self, timeout: float | None = None) -> Any | None:
        """
        Remove and return an item from the queue.

        Args:
            timeout: Maximum time to wait (None for no timeout)

        Returns:
            Item from queue, or None if timeout occurred
        """
        with self._not_empty:
            if timeout is None:
                while not self._queue:
                    self._not_empty.wait()
            else:
                end_time = time.monotonic() + timeout
                while not self._queue:
                    remaining = end_time - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._not_empty.wait(remaining)

            item = self._queue.popleft()
            self._total_removed += 1
            return item

    def size(self) -> int:
        """Return the current number of items in the queue."""
        with self._lock:
            return len(self._queue)

    def is_empty(self) -> bool:
        """Return True if the queue is empty."""
        with self._lock:
            return not self._queue

    def get_stats(self) -> QueueStats:
        """Return current queue statistics."""
        with self._lock:
            return QueueStats(
                size=len(self._queue),
                total_added=self._total_added,
                total_removed=self._total_removed,
                max_size_reached=self._max_size_reached,
            )

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"TaskQueue(size={self.size()})"


@dataclass
class _Task(Generic[T]):
    function: Callable[[], T]
    future: Future[T]


class SerialExecutionQueue:
    """Runs submitted callables one at a time, in submission order.

    A single daemon worker thread drains the queue. Completion callbacks are
    attached to the task's future before it is enqueued, so they always run
    on the worker thread, after the task finished and before the next task
    starts. Submitting never blocks the caller.

    Example:
        >>> queue = SerialExecutionQueue("example")
        >>> queue.submit(lambda: 1 + 1).result()
        2
        >>> queue.shutdown()
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name or f"{Queue.WORKER_NAME_PREFIX}-{next(_queue_ids)}"
        self._tasks = TaskQueue()
        self._state_lock = threading.Lock()
        self._closed = False
        self._stats = {
            "submitted": 0,
            "completed": 0,
            "failed": 0,
            "callback_errors": 0,
        }
        self._worker = threading.Thread(
            target=self._run,
            name=f"{self.name}-worker",
            daemon=True,
        )
        self._worker.start()
        logger.debug("Started serial execution queue %s", self.name)

    @property
    def is_closed(self) -> bool:
        with self._state_lock:
            return self._closed

    def is_worker_thread(self) -> bool:
        """Return True when called from this queue's worker thread."""
        return threading.current_thread() is self._worker

    def submit(
        self,
        function: Callable[[], T],
        completion: Callable[[T], None] | None = None,
    ) -> Future[T]:
        """Enqueue ``function`` and return a future for its result.

        Args:
            function: Zero-argument callable to run on the worker
            completion: Optional callback receiving the function's result

        Returns:
            Future resolved by the worker once ``function`` has run

        Raises:
            StoreClosedError: If the queue has been shut down
        """
        future: Future[T] = Future()
        if completion is not None:
            future.add_done_callback(self._completion_adapter(completion))

        with self._state_lock:
            if self._closed:
                raise StoreClosedError(
                    ErrorCode.STORE_CLOSED,
                    f"Serial queue {self.name} is shut down",
                    ErrorContext(operation="submit"),
                )
            self._tasks.put(_Task(function=function, future=future))
            self._stats["submitted"] += 1
        return future

    def shutdown(self, wait: bool = True, finalizer: Callable[[], Any] | None = None) -> None:
        """Stop accepting tasks and let the worker drain pending ones.

        Calling ``shutdown`` more than once is a no-op. When called from the
        worker thread itself the join is skipped.

        Args:
            wait: Block until the worker has finished
            finalizer: Runs on the worker after every pending task
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
            if finalizer is not None:
                self._tasks.put(_Task(function=finalizer, future=Future()))
            self._tasks.put(_STOP)

        if wait and not self.is_worker_thread():
            self._worker.join()
        logger.debug("Serial execution queue %s shut down", self.name)

    def get_stats(self) -> dict[str, Any]:
        """Return task counters together with queue statistics."""
        with self._state_lock:
            stats: dict[str, Any] = dict(self._stats)
        stats["pending"] = self._tasks.size()
        return stats

    def _completion_adapter(self, completion: Callable[[T], None]) -> Callable[[Future[T]], None]:
        def _deliver(future: Future[T]) -> None:
            if future.cancelled() or future.exception() is not None:
                return
            try:
                completion(future.result())
            except Exception:
                self._count("callback_errors")
                logger.exception("Completion callback raised in queue %s", self.name)

        return _deliver

    def _count(self, key: str) -> None:
        with self._state_lock:
            self._stats[key] += 1

    def _run(self) -> None:
        while True:
            item = self._tasks.get()
            if item is _STOP:
                break
            self._execute(item)
            # a finished task must not outlive its run
            del item

    def _execute(self, task: _Task[Any]) -> None:
        if not task.future.set_running_or_notify_cancel():
            return
        try:
            result = task.function()
        except Exception as exc:  # noqa: BLE001
            self._count("failed")
            logger.exception("Task raised in serial queue %s", self.name)
            task.future.set_exception(exc)
        else:
            self._count("completed")
            task.future.set_result(result)

    def __repr__(self) -> str:
        return f"SerialExecutionQueue(name={self.name!r}, closed={self.is_closed})"


__all__ = ["QueueStats", "SerialExecutionQueue", "TaskQueue"]
