"""Operator flags shared by every batch command."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import click

from conveyor.models.run_options import RunOptions

if TYPE_CHECKING:
    from collections.abc import Callable

F = TypeVar("F", bound="Callable[..., Any]")

_BATCH_OPTIONS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("--dump-sql",), "Print the SQL of the query this command will execute and exit"),
    (("--log-sql",), "Log every SQL query executed and print it after each row"),
    (("--step",), "Step through each row one-by-one"),
    (("--diff",), "Show a diff of the changes made to each row"),
    (("--show-memory-usage",), "Include the command's memory usage in the progress bar"),
    (("--pause-on-error",), "Pause and ask to continue when a row raises an exception"),
    (("-v", "--verbose"), "Print a full traceback for every row that raises an exception"),
)

OPTION_NAMES: tuple[str, ...] = tuple(
    decls[-1].removeprefix("--").replace("-", "_") for decls, _ in _BATCH_OPTIONS
)


def batch_options(func: F) -> F:
    """Register the batch flags on a click command."""
    for decls, help_text in reversed(_BATCH_OPTIONS):
        func = click.option(*decls, is_flag=True, default=False, help=help_text)(func)
    return func


def pop_run_options(kwargs: dict[str, Any]) -> RunOptions:
    """Remove the batch flags from a command's kwargs and build ``RunOptions``."""
    return RunOptions(**{name: kwargs.pop(name, False) for name in OPTION_NAMES})
