"""Protocols for the engine's collaborators.

The engine only talks to commands, records, query sources and the terminal
through these interfaces. Capability checks (can this command handle rows,
can this record report its changes) are ``isinstance`` checks against the
runtime-checkable protocols below.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence
    from contextlib import AbstractContextManager

    from conveyor.models.query_activity import QueryActivityEntry


@runtime_checkable
class QuerySource(Protocol):
    """A countable, pageable query over some data store."""

    def count(self) -> int: ...

    def fetch(self, limit: int, offset: int = 0) -> list[Any]: ...

    def to_sql(self) -> str: ...

    def get_bindings(self) -> list[Any]: ...

    def quote(self, value: Any) -> str: ...

    def listen(
        self, listener: Callable[[QueryActivityEntry], None]
    ) -> AbstractContextManager[None]: ...

    def transaction(self) -> AbstractContextManager[TransactionHandle]: ...


@runtime_checkable
class KeysetQuerySource(QuerySource, Protocol):
    """A query source that can page by an ordered key column."""

    key_column: str

    def fetch_after(self, last_key: Any, limit: int) -> list[Any]: ...


@runtime_checkable
class ChangeTracking(Protocol):
    """A record that remembers its original state and its last saved changes."""

    def get_original(self) -> Mapping[str, Any]: ...

    def get_changes(self) -> Mapping[str, Any]: ...


@runtime_checkable
class RowHandler(Protocol):
    """A command that can process one record."""

    def handle_row(self, record: Any) -> None: ...


@runtime_checkable
class QueryProvider(Protocol):
    """A command that can build the query it iterates over."""

    def query(self) -> Any: ...


class Prompter(Protocol):
    """Asks the operator a yes/no question."""

    def confirm(self, question: str, default: bool = False) -> bool: ...


@runtime_checkable
class TableRenderer(Protocol):
    """Prints report headers and tables of rows."""

    def line(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...

    def new_line(self) -> None: ...

    def table(self, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None: ...


class TransactionHandle(Protocol):
    """An open transaction; a clean exit rolls back when ``rollback_only`` is set."""

    rollback_only: bool
