"""SQLite database service."""

from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from conveyor.models.query_activity import QueryActivityEntry

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

logger = structlog.get_logger(__name__)

Params = tuple[Any, ...] | list[Any] | dict[str, Any]


@dataclass
class TransactionScope:
    """Handle for the outermost open transaction.

    Setting ``rollback_only`` makes a clean exit roll back instead of commit.
    """

    cursor: sqlite3.Cursor
    rollback_only: bool = False


class Database:
    """SQLite connection wrapper with transaction scopes and query listeners."""

    def __init__(self, db_path: str = "data/conveyor.db") -> None:
        self.db_path = db_path
        self._ensure_directory()
        self._connection: sqlite3.Connection | None = None
        self._listeners: list[Callable[[QueryActivityEntry], None]] = []
        self._scope: TransactionScope | None = None

    def _ensure_directory(self) -> None:
        """Ensure the parent directory of the database file exists."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(self.db_path)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys=ON")
        return self._connection

    @property
    def in_transaction(self) -> bool:
        return self._scope is not None

    @contextmanager
    def transaction(self) -> Generator[TransactionScope, None, None]:
        """Open a transaction; nested calls join the outermost one."""
        if self._scope is not None:
            yield self._scope
            return

        conn = self.connection
        scope = TransactionScope(cursor=conn.cursor())
        self._scope = scope
        try:
            yield scope
        except BaseException:
            conn.rollback()
            logger.info("transaction_rolled_back", reason="exception")
            raise
        else:
            if scope.rollback_only:
                conn.rollback()
                logger.info("transaction_rolled_back", reason="rollback_only")
            else:
                conn.commit()
        finally:
            self._scope = None

    def commit(self) -> None:
        """Commit pending writes unless a transaction scope owns them."""
        if self._scope is None:
            self.connection.commit()

    @contextmanager
    def listen(
        self, listener: Callable[[QueryActivityEntry], None]
    ) -> Generator[None, None, None]:
        """Report every statement executed through this wrapper to ``listener``."""
        self._listeners.append(listener)
        try:
            yield
        finally:
            self._listeners.remove(listener)

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Execute a single SQL statement."""
        started = time.perf_counter()
        cursor = self.connection.execute(sql, params)
        if self._listeners:
            bindings = tuple(params.values()) if isinstance(params, dict) else tuple(params)
            entry = QueryActivityEntry(
                sql=sql,
                bindings=bindings,
                time_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            for listener in list(self._listeners):
                listener(entry)
        return cursor

    def fetchone(self, sql: str, params: Params = ()) -> sqlite3.Row | None:
        """Execute and fetch one row."""
        cursor = self.execute(sql, params)
        return cursor.fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        """Execute and fetch all rows."""
        cursor = self.execute(sql, params)
        return cursor.fetchall()

    def quote(self, value: Any) -> str:
        """Quote a value the way SQLite renders literals."""
        row = self.connection.execute("SELECT quote(?)", (value,)).fetchone()
        return str(row[0])

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
