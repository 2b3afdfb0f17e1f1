"""Data models for runs, outcomes and configuration."""

from conveyor.models.collected_exception import CollectedException
from conveyor.models.config import Settings
from conveyor.models.outcome import (
    COMPLETED,
    Aborted,
    Completed,
    ExitCode,
    Failed,
    Outcome,
    abort,
    invalid,
)
from conveyor.models.query_activity import QueryActivityEntry
from conveyor.models.run import Run, RunState
from conveyor.models.run_options import RunOptions

__all__ = [
    "COMPLETED",
    "Aborted",
    "CollectedException",
    "Completed",
    "ExitCode",
    "Failed",
    "Outcome",
    "QueryActivityEntry",
    "Run",
    "RunOptions",
    "RunState",
    "Settings",
    "abort",
    "invalid",
]
