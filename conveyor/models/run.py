"""Run lifecycle state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RunState(StrEnum):
    """Lifecycle state of one invocation."""

    RUNNING = "running"
    ABORTED = "aborted"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Run:
    """One invocation of a batch command.

    The state leaves RUNNING exactly once and never goes back.
    """

    total: int | None = None
    processed: int = 0
    state: RunState = RunState.RUNNING

    @property
    def finished(self) -> bool:
        return self.state is not RunState.RUNNING

    def transition(self, state: RunState) -> None:
        """Move to a terminal state."""
        if self.finished:
            msg = f"run already {self.state}, cannot become {state}"
            raise RuntimeError(msg)
        if state is RunState.RUNNING:
            msg = "a run cannot transition back to running"
            raise RuntimeError(msg)
        self.state = state
