"""Progress display for batch runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import psutil
from rich import filesize
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from conveyor.utils.logger import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console
    from rich.progress import Task

logger = get_logger(__name__)


@dataclass
class ProgressState:
    """Counter state of one progress display."""

    total: int = 0
    processed: int = 0
    paused: bool = False


class MemoryUsageColumn(ProgressColumn):
    """Resident memory of the current process."""

    def __init__(self) -> None:
        super().__init__()
        self._process = psutil.Process()

    def render(self, task: Task) -> Text:
        rss = self._process.memory_info().rss
        return Text(f"{filesize.decimal(rss)} RAM", style="progress.data.speed")


class ProgressReporter:
    """Counts processed records against a known total and draws a progress bar.

    ``pause()`` hides the bar so other output can be printed or a question
    asked; ``resume()`` draws it again. Pauses nest: the bar only comes back
    when every ``pause()`` has been matched by a ``resume()``.
    """

    def __init__(self, console: Console, *, show_memory_usage: bool = False) -> None:
        self.console = console
        self.show_memory_usage = show_memory_usage
        self.state = ProgressState()
        self._progress: Progress | None = None
        self._task: TaskID | None = None
        self._pause_depth = 0
        self._finished = False

    @property
    def running(self) -> bool:
        return self._progress is not None and not self._finished

    def start(self, total: int, singular: str, plural: str) -> None:
        """Start drawing the bar for ``total`` records."""
        columns: list[ProgressColumn] = [
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
        ]
        if self.show_memory_usage:
            columns.append(MemoryUsageColumn())

        self.state = ProgressState(total=total)
        self._pause_depth = 0
        self._finished = False
        self._progress = Progress(*columns, console=self.console, transient=True)
        self._task = self._progress.add_task(plural, total=total)
        self._progress.start()
        logger.debug("progress_started", total=total, label=singular)

    def advance(self) -> None:
        """Count one more processed record."""
        self.state.processed += 1
        if self.state.processed > self.state.total:
            # More rows than were counted up front; keep processed <= total.
            self.state.total = self.state.processed
            if self._progress is not None and self._task is not None:
                self._progress.update(self._task, total=self.state.total)
        if self._progress is not None and self._task is not None:
            self._progress.advance(self._task)

    def pause(self) -> None:
        """Hide the bar until the matching ``resume()``."""
        self._pause_depth += 1
        if self._pause_depth == 1 and self.running:
            assert self._progress is not None
            self._progress.stop()
            self.state.paused = True

    def resume(self) -> None:
        """Undo one ``pause()``; the bar is redrawn once none are outstanding."""
        if self._pause_depth == 0:
            return
        self._pause_depth -= 1
        if self._pause_depth == 0 and self.state.paused:
            self.state.paused = False
            if self.running:
                assert self._progress is not None
                self._progress.start()

    def interrupt(self, render: Callable[[], None]) -> None:
        """Run ``render`` with the bar hidden, then restore it."""
        self.pause()
        try:
            render()
        finally:
            self.resume()

    def finish(self) -> None:
        """Draw the final state of the bar and stop updating it."""
        if not self.running:
            return
        assert self._progress is not None
        self._finished = True
        self._pause_depth = 0
        self.state.paused = False
        # Keep the finished bar on screen.
        self._progress.live.transient = False
        self._progress.start()
        self._progress.stop()
        logger.debug("progress_finished", processed=self.state.processed, total=self.state.total)
