"""Rows that remember their original values."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from conveyor.utils.validators import quote_identifier

if TYPE_CHECKING:
    from conveyor.services.database import Database

logger = structlog.get_logger(__name__)


class TrackedRow(Mapping[str, Any]):
    """A table row that can be modified in place and saved back.

    ``get_original()`` is the state as last loaded or saved.
    ``get_changes()`` is what the most recent ``save()`` wrote.
    """

    def __init__(
        self,
        db: Database,
        table: str,
        key_column: str,
        values: Mapping[str, Any],
    ) -> None:
        self.db = db
        self.table = table
        self.key_column = key_column
        self._attributes = dict(values)
        self._original = dict(values)
        self._changes: dict[str, Any] = {}
        self.exists = True

    def __getitem__(self, column: str) -> Any:
        return self._attributes[column]

    def __setitem__(self, column: str, value: Any) -> None:
        if column not in self._attributes:
            msg = f"{self.table} has no column {column!r}"
            raise KeyError(msg)
        self._attributes[column] = value

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"<TrackedRow {self.table}#{self.key}>"

    @property
    def key(self) -> Any:
        return self._original[self.key_column]

    def get_original(self) -> dict[str, Any]:
        return dict(self._original)

    def get_dirty(self) -> dict[str, Any]:
        """Columns whose current value differs from the original."""
        return {
            column: value
            for column, value in self._attributes.items()
            if self._original.get(column) != value
        }

    def get_changes(self) -> dict[str, Any]:
        return dict(self._changes)

    def save(self) -> bool:
        """Write dirty columns back. Returns False when there was nothing to write."""
        dirty = self.get_dirty()
        if not dirty:
            self._changes = {}
            return False

        assignments = ", ".join(f"{quote_identifier(column)} = ?" for column in dirty)
        self.db.execute(
            f"UPDATE {quote_identifier(self.table)} SET {assignments}"  # noqa: S608
            f" WHERE {quote_identifier(self.key_column)} = ?",
            (*dirty.values(), self.key),
        )
        self.db.commit()

        self._changes = dirty
        self._original = dict(self._attributes)
        logger.debug("row_saved", table=self.table, key=self.key, columns=list(dirty))
        return True

    def delete(self) -> None:
        """Delete this row."""
        self.db.execute(
            f"DELETE FROM {quote_identifier(self.table)}"  # noqa: S608
            f" WHERE {quote_identifier(self.key_column)} = ?",
            (self.key,),
        )
        self.db.commit()
        self.exists = False
