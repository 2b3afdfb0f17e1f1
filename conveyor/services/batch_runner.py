"""Top-level orchestration of a batch run.

A run goes through four phases in order: prepare, print the intro, stream
the records, finish. Each phase returns an ``Outcome``; anything other than
``Completed`` ends the run with that outcome's exit code. A ``Failed``
outcome is re-raised so the error reaches the process boundary.
"""

from __future__ import annotations

from contextlib import ExitStack
from typing import TYPE_CHECKING, Any

import structlog

from conveyor.core.diff import DiffCapture
from conveyor.core.sql_formatter import format_query
from conveyor.models.outcome import (
    COMPLETED,
    Aborted,
    Completed,
    ExitCode,
    Failed,
    abort,
    invalid,
)
from conveyor.models.run import Run, RunState
from conveyor.models.run_options import RunOptions
from conveyor.services.chunk_processor import ChunkProcessor
from conveyor.services.exception_collector import ExceptionCollector
from conveyor.services.protocols import QueryProvider, QuerySource, RowHandler
from conveyor.services.query_logger import QueryActivityLogger
from conveyor.services.step_controller import StepController
from conveyor.services.terminal import Terminal
from conveyor.utils import messages
from conveyor.utils.logger import use_stderr_by_default
from conveyor.utils.progress import ProgressReporter

if TYPE_CHECKING:
    from conveyor.models.outcome import Outcome
    from conveyor.services.command import BatchCommand

logger = structlog.get_logger(__name__)


class BatchRunner:
    """Drives a ``BatchCommand`` through its query, one chunk at a time."""

    def __init__(
        self,
        command: BatchCommand,
        options: RunOptions | None = None,
        terminal: Terminal | None = None,
    ) -> None:
        use_stderr_by_default()
        self.command = command
        self.options = options or RunOptions()
        self.terminal = terminal or Terminal()
        self.run_state = Run()
        self.progress = ProgressReporter(
            self.terminal.console,
            show_memory_usage=self.options.show_memory_usage,
        )
        self.steps = StepController(self.terminal, self.progress)
        self.exceptions = ExceptionCollector()
        self.query_logger = QueryActivityLogger()
        self.diff = DiffCapture()
        self.processor: ChunkProcessor | None = None
        self._query: QuerySource | None = None
        self._stack: ExitStack | None = None

    @property
    def command_name(self) -> str:
        return type(self.command).__name__

    def run(self) -> int:
        """Run every phase and return the process exit status."""
        self.terminal.new_line()
        with structlog.contextvars.bound_contextvars(command=self.command_name):
            logger.info("run_started", **self.options.model_dump())
            try:
                with ExitStack() as stack:
                    self._stack = stack
                    outcome = self._run_phases()
                return self._conclude(outcome)
            except BaseException as error:
                if not self.run_state.finished:
                    self.run_state.transition(RunState.FAILED)
                    logger.error(
                        "run_failed",
                        error_type=type(error).__name__,
                        error=str(error),
                        processed=self.run_state.processed,
                    )
                raise
            finally:
                self._stack = None
                self.terminal.new_line()

    def _run_phases(self) -> Outcome:
        for phase in (self.prepare, self.print_intro, self.start, self.finish):
            outcome = phase()
            if not isinstance(outcome, Completed):
                return outcome
        return COMPLETED

    def _conclude(self, outcome: Outcome) -> int:
        if isinstance(outcome, Failed):
            raise outcome.error

        if isinstance(outcome, Aborted):
            if outcome.message:
                self.terminal.error(outcome.message)
            self.run_state.transition(RunState.ABORTED)
            logger.info(
                "run_aborted",
                reason=outcome.message,
                code=int(outcome.code),
                processed=self.run_state.processed,
            )
            return int(outcome.code)

        self.run_state.transition(RunState.COMPLETED)
        logger.info(
            "run_completed",
            total=self.run_state.total,
            processed=self.run_state.processed,
        )
        return int(ExitCode.SUCCESS)

    # --- Phases ---

    def prepare(self) -> Outcome:
        outcome = self._verify_command_setup()
        if not isinstance(outcome, Completed):
            return outcome

        self._set_verbosity()

        # Runs before --dump-sql is checked, since the hook may set up state
        # the query depends on.
        self.command.before_first_row()

        return self._dump_sql_if_requested()

    def print_intro(self) -> Outcome:
        template = (
            messages.QUERYING_WITH_TRANSACTION
            if self.command.use_transaction()
            else messages.QUERYING_WITHOUT_TRANSACTION
        )
        self.terminal.info(template.format(records=self.command.get_row_name_plural()))
        return COMPLETED

    def start(self) -> Outcome:
        query = self._resolve_query()
        if isinstance(query, Aborted):
            return query

        count = query.count()
        self.run_state.total = count
        if not count:
            self.terminal.info(
                messages.NO_MATCHES.format(records=self.command.get_row_name_plural())
            )
            return COMPLETED

        self.progress.start(count, self.command.get_row_name(), self.command.get_row_name_plural())
        try:
            self.command.before_first_query()

            if self.command.use_transaction():
                with query.transaction() as transaction:
                    outcome = self._execute_query(query)
                    if not isinstance(outcome, Completed):
                        transaction.rollback_only = True
                    if isinstance(outcome, Failed):
                        raise outcome.error
            else:
                outcome = self._execute_query(query)
        finally:
            self.progress.finish()

        self.run_state.processed = self.progress.state.processed
        return outcome

    def finish(self) -> Outcome:
        self.command.after_last_row()

        if self.exceptions.report(self.terminal, self.command.get_row_name()):
            return abort()

        return COMPLETED

    # --- Helpers ---

    def _execute_query(self, query: QuerySource) -> Outcome:
        self.processor = ChunkProcessor(
            self.command,
            self.options,
            self.terminal,
            self.progress,
            self.steps,
            self.exceptions,
            self.query_logger,
            self.diff,
        )
        try:
            self.command.iterate_over_query(query, self.processor)
        finally:
            self.run_state.processed = self.progress.state.processed
        return self.processor.outcome

    def _verify_command_setup(self) -> Outcome:
        if not isinstance(self.command, RowHandler):
            return invalid(
                messages.MISSING_OPERATION.format(command=self.command_name, operation="handle_row")
            )
        if not isinstance(self.command, QueryProvider):
            return invalid(
                messages.MISSING_OPERATION.format(command=self.command_name, operation="query")
            )
        return COMPLETED

    def _set_verbosity(self) -> None:
        if self.options.step or self.options.verbose:
            self.terminal.verbose = True

    def _dump_sql_if_requested(self) -> Outcome:
        if not self.options.dump_sql:
            return COMPLETED

        query = self._resolve_query()
        if isinstance(query, Aborted):
            return query

        self.terminal.new_line()
        self.terminal.line(format_query(query.to_sql(), query.get_bindings(), query.quote))
        return abort(code=ExitCode.SUCCESS)

    def _resolve_query(self) -> QuerySource | Aborted:
        """Build the command's query once and start listening to it if asked."""
        if self._query is not None:
            return self._query

        query: Any = self.command.query()  # type: ignore[attr-defined]
        if not isinstance(query, QuerySource):
            return invalid(messages.INVALID_QUERY.format(command=self.command_name))

        self._query = query
        if self.options.log_sql and self._stack is not None:
            self.query_logger.quote = query.quote
            self._stack.enter_context(query.listen(self.query_logger.record))
        return query


def run_batch(
    command: BatchCommand,
    options: RunOptions | None = None,
    terminal: Terminal | None = None,
) -> int:
    """Run ``command`` and return its exit status."""
    return BatchRunner(command, options, terminal).run()
