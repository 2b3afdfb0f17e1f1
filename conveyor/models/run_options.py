"""Operator flags controlling a single run."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class RunOptions(BaseModel):
    """The operator flags registered on every batch command."""

    model_config = ConfigDict(frozen=True)

    dump_sql: bool = False
    log_sql: bool = False
    step: bool = False
    diff: bool = False
    show_memory_usage: bool = False
    pause_on_error: bool = False
    verbose: bool = False

    @model_validator(mode="before")
    @classmethod
    def log_sql_implies_step(cls, data: Any) -> Any:
        """Queries are logged per record, so --log-sql turns on --step."""
        if isinstance(data, dict) and data.get("log_sql"):
            return {**data, "step": True}
        return data
