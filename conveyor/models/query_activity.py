"""A statement executed while a run was listening."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class QueryActivityEntry(BaseModel):
    """SQL text, its bound parameters and how long it took."""

    model_config = ConfigDict(frozen=True)

    sql: str
    bindings: tuple[Any, ...] = ()
    time_ms: float = 0.0
