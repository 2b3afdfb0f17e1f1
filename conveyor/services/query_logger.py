"""Records queries executed while a run is listening and prints them."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from conveyor.core.sql_formatter import format_query
from conveyor.utils import messages

if TYPE_CHECKING:
    from collections.abc import Callable

    from conveyor.models.query_activity import QueryActivityEntry
    from conveyor.services.protocols import TableRenderer


class QueryActivityLogger:
    """Activity log fed by the data layer's listener hook."""

    def __init__(self, quote: Callable[[Any], str] | None = None) -> None:
        self.quote = quote
        self._entries: list[QueryActivityEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: QueryActivityEntry) -> None:
        """Listener callback; append one executed statement."""
        self._entries.append(entry)

    def flush(self) -> list[QueryActivityEntry]:
        """Return everything recorded so far and clear the log."""
        entries, self._entries = self._entries, []
        return entries

    def format(self, entry: QueryActivityEntry) -> str:
        if self.quote is None:
            return format_query(entry.sql, entry.bindings)
        return format_query(entry.sql, entry.bindings, self.quote)

    def display(self, terminal: TableRenderer) -> int:
        """Print and clear the log. Returns how many queries were shown."""
        entries = self.flush()
        if not entries:
            return 0

        terminal.new_line()
        terminal.line(
            messages.choice(len(entries), messages.QUERY_EXECUTED, messages.QUERIES_EXECUTED)
        )
        terminal.table(
            [messages.QUERY_HEADING, messages.TIME_HEADING],
            [[self.format(entry), f"{entry.time_ms:.2f}"] for entry in entries],
        )
        return len(entries)
