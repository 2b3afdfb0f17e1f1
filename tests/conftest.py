"""Shared test fixtures for conveyor."""

from __future__ import annotations

import io
from collections import deque
from typing import TYPE_CHECKING, Any

import pytest
from rich.console import Console

from conveyor.services.command import BatchCommand, IdBatchCommand
from conveyor.services.database import Database
from conveyor.services.query_source import SqlQuery, TableQuery
from conveyor.services.terminal import Terminal

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path


WIDGETS = [
    (1, "sprocket", None, 1.5),
    (2, "gear", "red", 2.0),
    (3, "cog", None, 3.25),
    (4, "flange", None, 4.0),
    (5, "spindle", "blue", 5.5),
]


class ScriptedTerminal(Terminal):
    """Terminal writing to memory and answering prompts from a queue."""

    def __init__(self, answers: Iterable[bool] = ()) -> None:
        self.buffer = io.StringIO()
        super().__init__(
            Console(
                file=self.buffer,
                width=200,
                force_terminal=False,
                color_system=None,
                highlight=False,
            )
        )
        self.answers: deque[bool] = deque(answers)
        self.questions: list[tuple[str, bool]] = []

    @property
    def output(self) -> str:
        return self.buffer.getvalue()

    def confirm(self, question: str, default: bool = False) -> bool:
        self.questions.append((question, default))
        if not self.answers:
            msg = f"unexpected prompt: {question}"
            raise AssertionError(msg)
        return self.answers.popleft()


class WidgetCommand(BatchCommand):
    """Records every hook call; fails on the configured widget ids."""

    row_name = "widget"

    def __init__(
        self,
        db: Database,
        *,
        fail_ids: Iterable[int] = (),
        where: str | None = None,
        tracked: bool = False,
        chunk_size: int = 1000,
        collects_exceptions: bool = False,
        transactional: bool = False,
    ) -> None:
        self.db = db
        self.fail_ids = set(fail_ids)
        self.where = where
        self.tracked = tracked
        self.chunk_size = chunk_size
        self.collects_exceptions = collects_exceptions
        self.transactional = transactional
        self.calls: list[str] = []
        self.handled: list[int] = []
        self.chunks: list[int] = []

    def query(self) -> SqlQuery | TableQuery:
        if self.tracked:
            query = TableQuery(self.db, "widgets")
            if self.where:
                query.where(self.where)
            return query
        sql = "SELECT * FROM widgets"
        if self.where:
            sql += f" WHERE {self.where}"
        return SqlQuery(self.db, sql + " ORDER BY id")

    def handle_row(self, record: Any) -> None:
        self.handled.append(record["id"])
        if record["id"] in self.fail_ids:
            msg = f"widget {record['id']} is broken"
            raise RuntimeError(msg)
        if self.tracked:
            record["color"] = "green"
            record.save()

    def before_first_row(self) -> None:
        self.calls.append("before_first_row")

    def before_first_query(self) -> None:
        self.calls.append("before_first_query")

    def prepare_chunk(self, chunk: Any) -> None:
        self.chunks.append(len(chunk))

    def after_last_row(self) -> None:
        self.calls.append("after_last_row")


class PaintCommand(IdBatchCommand):
    """Paints unpainted widgets; painted rows drop out of the query."""

    row_name = "widget"

    def __init__(self, db: Database, *, chunk_size: int = 2, transactional: bool = False) -> None:
        self.db = db
        self.chunk_size = chunk_size
        self.transactional = transactional

    def query(self) -> TableQuery:
        return TableQuery(self.db, "widgets").where_null("color")

    def handle_row(self, record: Any) -> None:
        record["color"] = "painted"
        record.save()


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> str:
    """Provide a temporary database file path."""
    return str(tmp_path / "test.db")


@pytest.fixture
def db(tmp_db_path: str) -> Iterator[Database]:
    """Provide a database with a seeded ``widgets`` table."""
    database = Database(db_path=tmp_db_path)
    database.execute(
        """CREATE TABLE widgets (
               id INTEGER PRIMARY KEY,
               name TEXT NOT NULL,
               color TEXT,
               price REAL NOT NULL
           )"""
    )
    database.connection.executemany("INSERT INTO widgets VALUES (?, ?, ?, ?)", WIDGETS)
    database.connection.commit()
    yield database
    database.close()


@pytest.fixture
def terminal() -> ScriptedTerminal:
    return ScriptedTerminal()


@pytest.fixture
def make_terminal() -> type[ScriptedTerminal]:
    """Build a terminal that answers prompts from the given answers."""
    return ScriptedTerminal


@pytest.fixture
def make_command() -> type[WidgetCommand]:
    return WidgetCommand


@pytest.fixture
def paint_command() -> type[PaintCommand]:
    return PaintCommand


@pytest.fixture
def read_colors(db: Database) -> Any:
    """Map widget id to its stored color."""

    def read() -> dict[int, str | None]:
        return {row["id"]: row["color"] for row in db.fetchall("SELECT id, color FROM widgets")}

    return read
