"""Query sources over a SQLite database.

``SqlQuery`` wraps hand-written SELECT text and yields plain dicts.
``TableQuery`` builds its SELECT from a table name and filters and yields
``TrackedRow`` records that can be saved back. Both satisfy the
``QuerySource`` protocol, so a command may return either from ``query()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from conveyor.services.tracked_row import TrackedRow
from conveyor.utils.validators import quote_identifier

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from contextlib import AbstractContextManager

    from conveyor.models.query_activity import QueryActivityEntry
    from conveyor.services.database import Database, TransactionScope


class _DatabaseQuery:
    """Behaviour shared by queries that run against a ``Database``."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def to_sql(self) -> str:
        raise NotImplementedError

    def get_bindings(self) -> list[Any]:
        raise NotImplementedError

    def _hydrate(self, row: Any) -> Any:
        return dict(row)

    def count(self) -> int:
        row = self.db.fetchone(
            f"SELECT COUNT(*) FROM ({self.to_sql()}) AS counted",  # noqa: S608
            self.get_bindings(),
        )
        return int(row[0]) if row else 0

    def fetch(self, limit: int, offset: int = 0) -> list[Any]:
        rows = self.db.fetchall(
            f"{self.to_sql()} LIMIT ? OFFSET ?",
            [*self.get_bindings(), limit, offset],
        )
        return [self._hydrate(row) for row in rows]

    def quote(self, value: Any) -> str:
        return self.db.quote(value)

    def listen(
        self, listener: Callable[[QueryActivityEntry], None]
    ) -> AbstractContextManager[None]:
        return self.db.listen(listener)

    def transaction(self) -> AbstractContextManager[TransactionScope]:
        return self.db.transaction()


class SqlQuery(_DatabaseQuery):
    """A hand-written SELECT statement with positional ``?`` bindings."""

    def __init__(self, db: Database, sql: str, bindings: Sequence[Any] = ()) -> None:
        super().__init__(db)
        self.sql = sql.strip().rstrip(";")
        self.bindings = list(bindings)

    def to_sql(self) -> str:
        return self.sql

    def get_bindings(self) -> list[Any]:
        return list(self.bindings)


class TableQuery(_DatabaseQuery):
    """SELECT * from one table, filtered by ``where`` clauses and ordered by key."""

    def __init__(self, db: Database, table: str, key_column: str = "id") -> None:
        super().__init__(db)
        self.table = table
        self.key_column = key_column
        self._wheres: list[tuple[str, list[Any]]] = []
        quote_identifier(table)
        quote_identifier(key_column)

    def where(self, clause: str, *bindings: Any) -> TableQuery:
        """Add a raw filter; clauses are joined with AND."""
        self._wheres.append((clause, list(bindings)))
        return self

    def where_null(self, column: str) -> TableQuery:
        return self.where(f"{quote_identifier(column)} IS NULL")

    def where_in(self, column: str, values: Sequence[Any]) -> TableQuery:
        placeholders = ", ".join("?" for _ in values) or "NULL"
        return self.where(f"{quote_identifier(column)} IN ({placeholders})", *values)

    def _where_sql(self, extra: str | None = None) -> str:
        clauses = [f"({clause})" for clause, _ in self._wheres]
        if extra:
            clauses.append(extra)
        return f" WHERE {' AND '.join(clauses)}" if clauses else ""

    def to_sql(self) -> str:
        return (
            f"SELECT * FROM {quote_identifier(self.table)}{self._where_sql()}"  # noqa: S608
            f" ORDER BY {quote_identifier(self.key_column)}"
        )

    def get_bindings(self) -> list[Any]:
        return [binding for _, bindings in self._wheres for binding in bindings]

    def _hydrate(self, row: Any) -> TrackedRow:
        return TrackedRow(self.db, self.table, self.key_column, dict(row))

    def fetch_after(self, last_key: Any, limit: int) -> list[TrackedRow]:
        """Fetch the next ``limit`` rows whose key is greater than ``last_key``."""
        key = quote_identifier(self.key_column)
        bindings = self.get_bindings()
        extra = None
        if last_key is not None:
            extra = f"{key} > ?"
            bindings.append(last_key)
        rows = self.db.fetchall(
            f"SELECT * FROM {quote_identifier(self.table)}{self._where_sql(extra)}"  # noqa: S608
            f" ORDER BY {key} LIMIT ?",
            [*bindings, limit],
        )
        return [self._hydrate(row) for row in rows]
