"""Storage locations and pluggable storage backends.

A backend turns a ``StorageLocation`` into a SQLAlchemy ``Engine``. The
production backend is ``SQLiteBackend``; ``FaultInjectingBackend`` wraps any
backend and makes chosen kinds of statements fail, so tests can exercise
the store's failure paths against a real engine.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from feedstore.shared.constants import Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageLocation:
    """Where a store keeps its data.

    ``path`` is None for an ephemeral location, which lives only as long as
    the store that opened it.
    """

    path: Path | None = None

    @classmethod
    def file(cls, path: str | Path) -> StorageLocation:
        return cls(path=Path(path))

    @classmethod
    def ephemeral(cls) -> StorageLocation:
        return cls(path=None)

    @classmethod
    def from_value(cls, value: str | Path | StorageLocation) -> StorageLocation:
        """Build a location from a path, an alias or an existing location.

        The strings ``":memory:"`` and ``"/dev/null"`` mean ephemeral.
        """
        if isinstance(value, StorageLocation):
            return value
        if str(value) in Storage.EPHEMERAL_ALIASES:
            return cls.ephemeral()
        return cls.file(value)

    @property
    def is_ephemeral(self) -> bool:
        return self.path is None

    @property
    def url(self) -> str:
        """SQLAlchemy URL of the location."""
        if self.path is None:
            return Storage.SQLITE_MEMORY_URL
        return f"{Storage.SQLITE_URL_PREFIX}{self.path}"

    def __str__(self) -> str:
        return ":memory:" if self.path is None else str(self.path)


class StorageBackend(Protocol):
    """Creates engines for storage locations."""

    def create_engine(self, location: StorageLocation) -> Engine:
        """Return an engine bound to ``location``."""


class SQLiteBackend:
    """Production backend: one SQLite connection per engine.

    Uses a ``StaticPool`` so an engine holds exactly one connection; the
    owning store only touches it from its worker thread. pysqlite's own
    transaction handling is turned off and every transaction starts with
    ``BEGIN IMMEDIATE``, so a transaction holds the write lock from its first
    statement and stores sharing a file never interleave.
    """

    def __init__(self, busy_timeout: float = Storage.BUSY_TIMEOUT_SECONDS, echo: bool = False) -> None:
        self.busy_timeout = busy_timeout
        self.echo = echo

    def create_engine(self, location: StorageLocation) -> Engine:
        if location.path is not None:
            location.path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            location.url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False, "timeout": self.busy_timeout},
            echo=self.echo,
        )
        event.listen(engine, "connect", _configure_connection)
        event.listen(engine, "begin", _begin_immediate)
        logger.debug("Created SQLite engine for %s", location)
        return engine


def _configure_connection(dbapi_connection: Any, connection_record: Any) -> None:
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _begin_immediate(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN IMMEDIATE")


class FaultKind(str, Enum):
    """Kinds of statements a ``FaultInjectingBackend`` can make fail."""

    FETCH = "FETCH"
    SAVE = "SAVE"
    DELETE = "DELETE"


_STATEMENT_KINDS: dict[str, FaultKind] = {
    "SELECT": FaultKind.FETCH,
    "INSERT": FaultKind.SAVE,
    "UPDATE": FaultKind.SAVE,
    "DELETE": FaultKind.DELETE,
}


def _statement_kind(statement: str) -> FaultKind | None:
    words = statement.lstrip().split(None, 1)
    if not words:
        return None
    return _STATEMENT_KINDS.get(words[0].upper())


class FaultInjectingBackend:
    """Backend that fails selected statements of a wrapped backend.

    Faults are raised as DBAPI ``OperationalError``s from the dialect's
    execute hooks, so the engine wraps them exactly like real failures.
    Schema creation (DDL) is never affected.

    Args:
        wrapped: Backend creating the real engine (default: SQLiteBackend)
        faults: Statement kinds failing from the start
        fail_on_open: Make every connection attempt fail
    """

    def __init__(
        self,
        wrapped: StorageBackend | None = None,
        faults: set[FaultKind] | None = None,
        *,
        fail_on_open: bool = False,
    ) -> None:
        self.wrapped = wrapped or SQLiteBackend()
        self.fail_on_open = fail_on_open
        self._faults: set[FaultKind] = set(faults or ())
        self._lock = threading.Lock()
        self.injected: list[FaultKind] = []

    def arm(self, *kinds: FaultKind) -> None:
        """Start failing statements of the given kinds."""
        with self._lock:
            self._faults.update(kinds)

    def disarm(self, *kinds: FaultKind) -> None:
        """Stop failing the given kinds, or every kind when none is given."""
        with self._lock:
            if kinds:
                self._faults.difference_update(kinds)
            else:
                self._faults.clear()

    def is_armed(self, kind: FaultKind) -> bool:
        with self._lock:
            return kind in self._faults

    def create_engine(self, location: StorageLocation) -> Engine:
        engine = self.wrapped.create_engine(location)
        if self.fail_on_open:
            event.listen(engine, "do_connect", self._refuse_connection)
        event.listen(engine, "do_execute", self._check_statement)
        event.listen(engine, "do_executemany", self._check_statement)
        event.listen(engine, "do_execute_no_params", self._check_statement_no_params)
        return engine

    def _refuse_connection(self, *args: Any) -> None:
        msg = "unable to open database file (injected fault)"
        raise sqlite3.OperationalError(msg)

    def _check_statement_no_params(self, cursor: Any, statement: str, context: Any) -> None:
        self._check_statement(cursor, statement, None, context)

    def _check_statement(self, cursor: Any, statement: str, parameters: Any, context: Any) -> None:
        kind = _statement_kind(statement)
        if kind is None or not self.is_armed(kind):
            return
        with self._lock:
            self.injected.append(kind)
        logger.debug("Injecting %s fault into: %s", kind.value, statement.split(None, 1)[0])
        msg = f"injected {kind.value.lower()} fault"
        raise sqlite3.OperationalError(msg)


__all__ = [
    "FaultInjectingBackend",
    "FaultKind",
    "SQLiteBackend",
    "StorageBackend",
    "StorageLocation",
]
