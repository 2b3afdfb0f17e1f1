"""Render SQL with its bindings inlined, for display only."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import sqlglot
import structlog
from sqlglot.errors import SqlglotError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = structlog.get_logger(__name__)

# Quoted literals are matched first so a "?" inside a string is left alone.
_TOKEN = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\?")


def flatten_bindings(bindings: Iterable[Any]) -> list[Any]:
    """Flatten nested lists, tuples and mapping values into one ordered list."""
    flat: list[Any] = []
    for value in bindings:
        if isinstance(value, Mapping):
            flat.extend(flatten_bindings(value.values()))
        elif isinstance(value, list | tuple | set | frozenset):
            flat.extend(flatten_bindings(value))
        else:
            flat.append(value)
    return flat


def quote_literal(value: Any) -> str:
    """Quote a value as an ANSI SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int | float):
        return repr(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return f"X'{bytes(value).hex().upper()}'"
    text = str(value).replace("'", "''")
    return f"'{text}'"


def substitute_bindings(
    sql: str,
    bindings: Iterable[Any],
    quote: Callable[[Any], str] = quote_literal,
) -> str:
    """Replace each bare ``?`` placeholder, left to right, with its quoted value.

    Placeholders beyond the number of bindings are left in place.
    """
    remaining = flatten_bindings(bindings)
    position = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal position
        token = match.group(0)
        if token != "?" or position >= len(remaining):
            return token
        value = remaining[position]
        position += 1
        return quote(value)

    return _TOKEN.sub(replace, sql)


def pretty_print(sql: str, dialect: str = "sqlite") -> str:
    """Pretty-print SQL text; unparseable text is returned as given."""
    try:
        statements = sqlglot.transpile(sql, read=dialect, write=dialect, pretty=True)
    except SqlglotError as exc:
        logger.debug("query_formatting_failed", error=str(exc))
        return sql.strip()
    return ";\n".join(statements)


def format_query(
    sql: str,
    bindings: Iterable[Any] = (),
    quote: Callable[[Any], str] = quote_literal,
    dialect: str = "sqlite",
) -> str:
    """Substitute bindings into ``sql`` and pretty-print the result."""
    return pretty_print(substitute_bindings(sql, bindings, quote), dialect)
