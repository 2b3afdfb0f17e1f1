"""Identifier and value validation utilities."""

from __future__ import annotations

import re

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_valid_identifier(name: str) -> bool:
    """Check if a string is a bare SQL identifier (letters, digits, underscore)."""
    return bool(_IDENTIFIER.match(name))


def quote_identifier(name: str) -> str:
    """Quote a validated identifier for interpolation into SQL text."""
    if not is_valid_identifier(name):
        msg = f"invalid SQL identifier: {name!r}"
        raise ValueError(msg)
    return f'"{name}"'
