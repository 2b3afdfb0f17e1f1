"""Base classes for commands driven by the batch runner.

Subclasses implement ``query()`` and ``handle_row()``; every other hook has
a default. ``BatchCommand`` pages with LIMIT/OFFSET, which is correct while
the handler leaves the result set alone. Handlers that remove rows from
their own result set (deleting them, filling in the column being filtered
on) should use ``IdBatchCommand``, which pages by primary key.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from conveyor.services.protocols import KeysetQuerySource
from conveyor.services.tracked_row import TrackedRow
from conveyor.utils import messages

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from conveyor.services.protocols import QuerySource


class BatchCommand:
    """Defaults for the optional parts of the command contract."""

    row_name: str = "record"
    row_name_plural: str | None = None
    chunk_size: int = 1000
    transactional: bool = False
    collects_exceptions: bool = False

    def get_row_name(self) -> str:
        return self.row_name

    def get_row_name_plural(self) -> str:
        return self.row_name_plural or messages.pluralize(self.row_name)

    def row_label(self, record: Any) -> str:
        """Short identifying label for a record, used in reports."""
        if isinstance(record, TrackedRow):
            return str(record.key)
        if isinstance(record, Mapping) and "id" in record:
            return str(record["id"])
        return str(record)[:100]

    def use_transaction(self) -> bool:
        return self.transactional

    def collect_exceptions(self) -> bool:
        return self.collects_exceptions

    def before_first_row(self) -> None:
        """Runs once, before the query is built."""

    def before_first_query(self) -> None:
        """Runs once, only when at least one record matches."""

    def prepare_chunk(self, chunk: Sequence[Any]) -> None:
        """Runs before the records of each chunk are handled."""

    def after_last_row(self) -> None:
        """Runs once, after the last record (or when nothing matched)."""

    def iterate_over_query(
        self,
        query: QuerySource,
        handle_chunk: Callable[[Sequence[Any]], bool],
    ) -> None:
        """Feed ``handle_chunk`` one page at a time until it returns False."""
        offset = 0
        while True:
            chunk = query.fetch(self.chunk_size, offset)
            if not chunk:
                return
            if not handle_chunk(chunk):
                return
            if len(chunk) < self.chunk_size:
                return
            offset += len(chunk)


class IdBatchCommand(BatchCommand):
    """Pages by primary key so handled rows may leave the result set."""

    def iterate_over_query(
        self,
        query: QuerySource,
        handle_chunk: Callable[[Sequence[Any]], bool],
    ) -> None:
        if not isinstance(query, KeysetQuerySource):
            msg = f"{type(self).__name__} needs a query that supports fetch_after()"
            raise TypeError(msg)

        last_key = None
        while True:
            chunk = query.fetch_after(last_key, self.chunk_size)
            if not chunk:
                return
            if not handle_chunk(chunk):
                return
            last_key = _key_of(chunk[-1], query.key_column)


def _key_of(record: Any, key_column: str) -> Any:
    if isinstance(record, TrackedRow):
        return record.key
    return record[key_column]
