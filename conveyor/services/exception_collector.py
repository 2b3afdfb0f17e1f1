"""Deferred per-record failures and the end-of-run report."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from conveyor.models.collected_exception import CollectedException
from conveyor.utils import messages

if TYPE_CHECKING:
    from collections.abc import Iterator

    from conveyor.services.protocols import TableRenderer

logger = structlog.get_logger(__name__)


class ExceptionCollector:
    """Keeps record failures in processing order for one summary table."""

    def __init__(self) -> None:
        self._exceptions: list[CollectedException] = []

    def __len__(self) -> int:
        return len(self._exceptions)

    def __iter__(self) -> Iterator[CollectedException]:
        return iter(self._exceptions)

    def collect(self, label: str, error: BaseException) -> CollectedException:
        collected = CollectedException.from_error(label, error)
        self._exceptions.append(collected)
        logger.info(
            "row_exception_collected",
            record=label,
            error_type=collected.error_type,
            error=collected.message,
        )
        return collected

    def report(self, terminal: TableRenderer, row_name: str) -> bool:
        """Print the summary table. Returns True if there was anything to report."""
        count = len(self._exceptions)
        if not count:
            return False

        terminal.new_line()
        terminal.error(
            messages.choice(count, messages.EXCEPTION_TRIGGERED, messages.EXCEPTIONS_TRIGGERED)
        )
        terminal.table(
            [messages.title(row_name), messages.EXCEPTION_HEADING, messages.MESSAGE_HEADING],
            [collected.as_row() for collected in self._exceptions],
        )
        return True