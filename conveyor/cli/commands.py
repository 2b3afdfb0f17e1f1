"""Built-in maintenance commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from conveyor.cli.options import batch_options, pop_run_options
from conveyor.models.config import Settings
from conveyor.services.batch_runner import run_batch
from conveyor.services.command import IdBatchCommand
from conveyor.services.database import Database
from conveyor.services.query_source import TableQuery
from conveyor.utils.logger import configure_logging
from conveyor.utils.validators import is_valid_identifier

if TYPE_CHECKING:
    from conveyor.services.tracked_row import TrackedRow


def _get_config() -> Settings:
    """Load configuration from environment and .env file."""
    return Settings()


def _get_db(config: Settings, database: str | None) -> Database:
    return Database(db_path=database or config.database_path)


def _identifier(ctx: click.Context, param: click.Parameter, value: str) -> str:
    if not is_valid_identifier(value):
        msg = f"{value!r} is not a valid SQL identifier"
        raise click.BadParameter(msg)
    return value


class BackfillColumnCommand(IdBatchCommand):
    """Fill NULLs in one column with a fixed value."""

    def __init__(
        self,
        db: Database,
        table: str,
        column: str,
        value: str,
        *,
        where: str | None = None,
        key_column: str = "id",
        chunk_size: int = 1000,
        transactional: bool = False,
        collects_exceptions: bool = False,
    ) -> None:
        self.db = db
        self.table = table
        self.column = column
        self.value = value
        self.where = where
        self.key_column = key_column
        self.chunk_size = chunk_size
        self.transactional = transactional
        self.collects_exceptions = collects_exceptions
        self.row_name = "row"

    def query(self) -> TableQuery:
        query = TableQuery(self.db, self.table, self.key_column).where_null(self.column)
        if self.where:
            query.where(self.where)
        return query

    def handle_row(self, record: TrackedRow) -> None:
        record[self.column] = self.value
        record.save()


class DeleteRowsCommand(IdBatchCommand):
    """Delete every row matching a filter, one row at a time."""

    def __init__(
        self,
        db: Database,
        table: str,
        where: str,
        *,
        key_column: str = "id",
        chunk_size: int = 1000,
        transactional: bool = False,
        collects_exceptions: bool = False,
    ) -> None:
        self.db = db
        self.table = table
        self.where = where
        self.key_column = key_column
        self.chunk_size = chunk_size
        self.transactional = transactional
        self.collects_exceptions = collects_exceptions
        self.row_name = "row"

    def query(self) -> TableQuery:
        return TableQuery(self.db, self.table, self.key_column).where(self.where)

    def handle_row(self, record: TrackedRow) -> None:
        record.delete()


def _common_options(func: Any) -> Any:
    func = click.option(
        "--collect-exceptions",
        is_flag=True,
        help="Keep going when a row fails and report every failure at the end",
    )(func)
    func = click.option(
        "--transaction", is_flag=True, help="Wrap the whole run in one transaction"
    )(func)
    func = click.option("--chunk-size", default=None, type=int, help="Rows fetched per query")(
        func
    )
    func = click.option("--key", default="id", callback=_identifier, help="Primary key column")(
        func
    )
    func = click.option("--database", default=None, help="SQLite database path")(func)
    return func


@click.command()
@click.argument("table", callback=_identifier)
@click.argument("column", callback=_identifier)
@click.argument("value")
@click.option("--where", default=None, help="Extra SQL filter on the rows to update")
@_common_options
@batch_options
@click.pass_context
def backfill_column(ctx: click.Context, **kwargs: Any) -> None:
    """Set COLUMN to VALUE on every row of TABLE where it is NULL."""
    options = pop_run_options(kwargs)
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)
    db = _get_db(config, kwargs["database"])

    command = BackfillColumnCommand(
        db,
        kwargs["table"],
        kwargs["column"],
        kwargs["value"],
        where=kwargs["where"],
        key_column=kwargs["key"],
        chunk_size=kwargs["chunk_size"] or config.chunk_size,
        transactional=kwargs["transaction"],
        collects_exceptions=kwargs["collect_exceptions"],
    )
    try:
        exit_code = run_batch(command, options)
    finally:
        db.close()
    ctx.exit(exit_code)


@click.command()
@click.argument("table", callback=_identifier)
@click.option("--where", required=True, help="SQL filter selecting the rows to delete")
@_common_options
@batch_options
@click.pass_context
def delete_rows(ctx: click.Context, **kwargs: Any) -> None:
    """Delete the rows of TABLE matching --where."""
    options = pop_run_options(kwargs)
    config = _get_config()
    configure_logging(config.log_level, json_output=config.log_json)
    db = _get_db(config, kwargs["database"])

    command = DeleteRowsCommand(
        db,
        kwargs["table"],
        kwargs["where"],
        key_column=kwargs["key"],
        chunk_size=kwargs["chunk_size"] or config.chunk_size,
        transactional=kwargs["transaction"],
        collects_exceptions=kwargs["collect_exceptions"],
    )
    try:
        exit_code = run_batch(command, options)
    finally:
        db.close()
    ctx.exit(exit_code)
