"""Tests for utility modules: messages, validators, progress, logging."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
import structlog
from rich.console import Console

from conveyor.utils import messages
from conveyor.utils.logger import configure_logging, use_stderr_by_default
from conveyor.utils.progress import MemoryUsageColumn, ProgressReporter
from conveyor.utils.validators import is_valid_identifier, quote_identifier

if TYPE_CHECKING:
    from collections.abc import Iterator

# ──────────────────────────────────────────────────────────────────────
# utils/messages.py
# ──────────────────────────────────────────────────────────────────────


class TestChoice:
    def test_singular(self) -> None:
        assert messages.choice(1, messages.QUERY_EXECUTED, messages.QUERIES_EXECUTED) == (
            "1 query executed"
        )

    def test_plural(self) -> None:
        assert messages.choice(3, messages.QUERY_EXECUTED, messages.QUERIES_EXECUTED) == (
            "3 queries executed"
        )

    def test_zero_is_plural(self) -> None:
        assert messages.choice(
            0, messages.EXCEPTION_TRIGGERED, messages.EXCEPTIONS_TRIGGERED
        ) == ("0 exceptions were triggered")


class TestPluralize:
    @pytest.mark.parametrize(
        ("word", "expected"),
        [
            ("record", "records"),
            ("entry", "entries"),
            ("key", "keys"),
            ("box", "boxes"),
            ("batch", "batches"),
        ],
    )
    def test_words(self, word: str, expected: str) -> None:
        assert messages.pluralize(word) == expected


class TestTitle:
    def test_title(self) -> None:
        assert messages.title("line_item") == "Line Item"


# ──────────────────────────────────────────────────────────────────────
# utils/validators.py
# ──────────────────────────────────────────────────────────────────────


class TestIdentifiers:
    def test_valid(self) -> None:
        assert is_valid_identifier("widgets")
        assert is_valid_identifier("_private2")

    def test_invalid(self) -> None:
        assert not is_valid_identifier("2fast")
        assert not is_valid_identifier("name; DROP TABLE x")
        assert not is_valid_identifier("")

    def test_quote(self) -> None:
        assert quote_identifier("widgets") == '"widgets"'

    def test_quote_rejects_invalid(self) -> None:
        with pytest.raises(ValueError, match="invalid SQL identifier"):
            quote_identifier('x"; --')



# ──────────────────────────────────────────────────────────────────────
# utils/progress.py
# ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def reporter() -> ProgressReporter:
    console = Console(file=io.StringIO(), force_terminal=False, width=120)
    return ProgressReporter(console)


class TestProgressReporter:
    def test_advance_counts(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        for _ in range(3):
            reporter.advance()
        assert reporter.state.processed == 3
        assert reporter.state.total == 5
        reporter.finish()

    def test_total_grows_with_extra_rows(self, reporter: ProgressReporter) -> None:
        reporter.start(1, "widget", "widgets")
        reporter.advance()
        reporter.advance()
        assert reporter.state.processed == 2
        assert reporter.state.total == 2
        reporter.finish()

    def test_nested_pauses(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        reporter.pause()
        reporter.pause()
        assert reporter.state.paused
        reporter.resume()
        assert reporter.state.paused
        reporter.resume()
        assert not reporter.state.paused
        reporter.finish()

    def test_unmatched_resume_is_ignored(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        reporter.resume()
        assert not reporter.state.paused
        reporter.finish()

    def test_interrupt_hides_bar_while_rendering(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        seen: list[bool] = []
        reporter.interrupt(lambda: seen.append(reporter.state.paused))
        assert seen == [True]
        assert not reporter.state.paused
        reporter.finish()

    def test_interrupt_restores_after_error(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")

        def render() -> None:
            raise RuntimeError("render failed")

        with pytest.raises(RuntimeError):
            reporter.interrupt(render)
        assert not reporter.state.paused
        reporter.finish()

    def test_finish_while_paused(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        reporter.pause()
        reporter.finish()
        assert not reporter.state.paused
        assert not reporter.running

    def test_finish_is_idempotent(self, reporter: ProgressReporter) -> None:
        reporter.start(5, "widget", "widgets")
        reporter.finish()
        reporter.finish()
        assert not reporter.running

    def test_pause_before_start(self, reporter: ProgressReporter) -> None:
        reporter.pause()
        reporter.resume()
        assert not reporter.state.paused
        assert not reporter.running


class TestMemoryUsageColumn:
    def test_renders_resident_memory(self) -> None:
        text = MemoryUsageColumn().render(MagicMock())
        assert text.plain.endswith("RAM")

    def test_reporter_adds_column(self) -> None:
        console = Console(file=io.StringIO(), force_terminal=False, width=120)
        reporter = ProgressReporter(console, show_memory_usage=True)
        reporter.start(2, "widget", "widgets")
        assert reporter._progress is not None
        assert any(isinstance(column, MemoryUsageColumn) for column in reporter._progress.columns)
        reporter.finish()


# ──────────────────────────────────────────────────────────────────────
# utils/logger.py
# ──────────────────────────────────────────────────────────────────────


@pytest.fixture
def unconfigured_structlog() -> Iterator[None]:
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


class TestUseStderrByDefault:
    def test_unconfigured_logs_go_to_stderr(
        self, unconfigured_structlog: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        use_stderr_by_default()
        structlog.get_logger("conveyor.test").info("progress_started", total=3)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "progress_started" in captured.err

    def test_existing_configuration_kept(self, unconfigured_structlog: None) -> None:
        configure_logging("WARNING")
        factory = structlog.get_config()["logger_factory"]

        use_stderr_by_default()

        assert structlog.get_config()["logger_factory"] is factory
