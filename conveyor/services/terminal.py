"""Terminal output and prompts for a run."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.traceback import Traceback

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


def _cell(value: Any) -> Text:
    """Render a table cell without interpreting rich markup."""
    if value is None:
        return Text("NULL", style="dim")
    if isinstance(value, Text):
        return value
    return Text(str(value))


class Terminal:
    """Writes lines and tables to a rich console and asks yes/no questions."""

    def __init__(self, console: Console | None = None, *, verbose: bool = False) -> None:
        self.console = console or Console(highlight=False)
        self.verbose = verbose

    def line(self, text: str = "", style: str | None = None) -> None:
        self.console.print(text, style=style, markup=False, highlight=False)

    def info(self, text: str) -> None:
        self.line(text, style="green")

    def error(self, text: str) -> None:
        self.line(text, style="bold red")

    def new_line(self, count: int = 1) -> None:
        self.console.line(count)

    def table(self, headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
        table = Table(box=box.SQUARE, show_lines=False)
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*(_cell(value) for value in row))
        self.console.print(table)

    def print_exception(self, error: BaseException) -> None:
        """Print a full traceback for ``error``."""
        self.console.print(Traceback.from_exception(type(error), error, error.__traceback__))

    def confirm(self, question: str, default: bool = False) -> bool:
        return click.confirm(question, default=default)
