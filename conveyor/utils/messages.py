"""Operator-facing strings.

Every string the engine prints lives here so that wording stays consistent
between the runner, the chunk processor and the CLI.
"""

from __future__ import annotations

NO_MATCHES = "There are no {records} that match your query."
QUERYING_WITH_TRANSACTION = "Querying {records} (using a transaction)..."
QUERYING_WITHOUT_TRANSACTION = "Querying {records}..."
CONFIRM_CONTINUE = "Continue?"
OPERATION_CANCELLED = "Operation cancelled."
QUERY_EXECUTED = "{count} query executed"
QUERIES_EXECUTED = "{count} queries executed"
QUERY_HEADING = "Query"
TIME_HEADING = "Time (ms)"
CHANGES_TO_RECORD = "Changes to {record}:"
FIELD_HEADING = "Field"
BEFORE_HEADING = "Before"
AFTER_HEADING = "After"
EXCEPTION_TRIGGERED = "{count} exception was triggered"
EXCEPTIONS_TRIGGERED = "{count} exceptions were triggered"
EXCEPTION_HEADING = "Exception"
MESSAGE_HEADING = "Message"
MISSING_OPERATION = "You must implement {command}.{operation}()"
INVALID_QUERY = "{command}.query() must return a query source"
DIFF_REQUIRES_TRACKING = "The --diff flag requires change-tracking records"


def choice(count: int, singular: str, plural: str) -> str:
    """Pick the singular or plural template and fill in ``count``."""
    template = singular if count == 1 else plural
    return template.format(count=count)


def pluralize(word: str) -> str:
    """Naive English plural used for default row labels."""
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def title(word: str) -> str:
    """Title-case a label for use as a table heading."""
    return " ".join(part.capitalize() for part in word.replace("_", " ").split())
