"""Per-record processing of one chunk."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from conveyor.models.outcome import (
    COMPLETED,
    Completed,
    Failed,
    abort,
    invalid,
)
from conveyor.utils import messages

if TYPE_CHECKING:
    from collections.abc import Sequence

    from conveyor.core.diff import DiffCapture, FieldChange
    from conveyor.models.outcome import Outcome
    from conveyor.models.run_options import RunOptions
    from conveyor.services.command import BatchCommand
    from conveyor.services.exception_collector import ExceptionCollector
    from conveyor.services.query_logger import QueryActivityLogger
    from conveyor.services.step_controller import StepController
    from conveyor.services.terminal import Terminal
    from conveyor.utils.progress import ProgressReporter

logger = structlog.get_logger(__name__)


class ChunkProcessor:
    """Runs the command's handler over each record of a chunk.

    Called once per chunk by the command's ``iterate_over_query``; returns
    False once the run has to stop, and keeps returning False afterwards.
    Why it stopped is left in ``outcome``.
    """

    def __init__(
        self,
        command: BatchCommand,
        options: RunOptions,
        terminal: Terminal,
        progress: ProgressReporter,
        steps: StepController,
        exceptions: ExceptionCollector,
        query_logger: QueryActivityLogger,
        diff: DiffCapture,
    ) -> None:
        self.command = command
        self.options = options
        self.terminal = terminal
        self.progress = progress
        self.steps = steps
        self.exceptions = exceptions
        self.query_logger = query_logger
        self.diff = diff
        self.outcome: Outcome = COMPLETED
        self.chunks = 0

    @property
    def stopped(self) -> bool:
        return not isinstance(self.outcome, Completed)

    def __call__(self, chunk: Sequence[Any]) -> bool:
        return self.process_chunk(chunk)

    def process_chunk(self, chunk: Sequence[Any]) -> bool:
        if self.stopped:
            return False

        self.chunks += 1
        self.command.prepare_chunk(chunk)

        for record in chunk:
            if not self.present_row(record):
                return False

        logger.debug("chunk_processed", chunk=self.chunks, size=len(chunk))
        return True

    def present_row(self, record: Any) -> bool:
        """Handle one record. Returns False when the run must stop."""
        snapshot = self.diff.snapshot(record) if self.options.diff else {}

        try:
            self.command.handle_row(record)  # type: ignore[attr-defined]
        except Exception as error:
            outcome = self.handle_row_exception(error, record)
            if outcome is not None:
                return self._stop(outcome)

        self.progress.advance()

        self._log_queries()

        outcome = self._log_diff(record, snapshot)
        if outcome is not None:
            return self._stop(outcome)

        if self.options.step and not self.steps.confirm_continue(default=True):
            return self._stop(abort(messages.OPERATION_CANCELLED))

        return True

    def handle_row_exception(self, error: Exception, record: Any) -> Outcome | None:
        """Apply the failure policy. Returns an outcome only if the run must stop."""
        label = self.command.row_label(record)
        logger.warning(
            "row_failed",
            record=label,
            error_type=type(error).__name__,
            error=str(error),
        )

        if self._should_propagate():
            return Failed(error)

        self._print_error(error)

        if self.options.pause_on_error and not self.steps.confirm_continue(default=False):
            return abort(messages.OPERATION_CANCELLED)

        if self.command.collect_exceptions():
            self.exceptions.collect(label, error)

        return None

    def _should_propagate(self) -> bool:
        return not self.command.collect_exceptions() and not self.options.pause_on_error

    def _print_error(self, error: Exception) -> None:
        if self.terminal.verbose:
            self.progress.interrupt(lambda: self.terminal.print_exception(error))
            return

        if self.options.pause_on_error:
            self.progress.interrupt(
                lambda: self.terminal.error(f"{type(error).__name__}: {error}")
            )

    def _log_queries(self) -> None:
        if not self.options.log_sql or not len(self.query_logger):
            return
        self.progress.interrupt(lambda: self.query_logger.display(self.terminal))

    def _log_diff(self, record: Any, snapshot: dict[str, Any]) -> Outcome | None:
        if not self.options.diff:
            return None

        if not self.diff.supports(record):
            return invalid(messages.DIFF_REQUIRES_TRACKING)

        changes = self.diff.changes(record, snapshot)
        if changes:
            self.progress.interrupt(lambda: self._print_changes(changes))
        return None

    def _print_changes(self, changes: list[FieldChange]) -> None:
        self.terminal.new_line()
        self.terminal.line(messages.CHANGES_TO_RECORD.format(record=self.command.get_row_name()))
        self.terminal.table(
            [messages.FIELD_HEADING, messages.BEFORE_HEADING, messages.AFTER_HEADING],
            [change.as_row() for change in changes],
        )

    def _stop(self, outcome: Outcome) -> bool:
        self.outcome = outcome
        self.progress.finish()
        logger.info(
            "processing_stopped",
            outcome=type(outcome).__name__,
            code=int(outcome.code),
        )
        return False
