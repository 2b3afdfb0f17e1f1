"""CLI entry point for conveyor."""

from __future__ import annotations

import click

from conveyor.cli.commands import backfill_column, delete_rows


@click.group()
@click.version_option(package_name="conveyor")
def cli() -> None:
    """Run maintenance jobs over a database in chunks."""


cli.add_command(backfill_column)
cli.add_command(delete_rows)
