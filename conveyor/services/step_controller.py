"""Pause-and-confirm interaction with the operator."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from conveyor.utils import messages

if TYPE_CHECKING:
    from conveyor.services.protocols import Prompter
    from conveyor.utils.progress import ProgressReporter

logger = structlog.get_logger(__name__)


class StepState(StrEnum):
    IDLE = "idle"
    PAUSED = "paused"


class StepController:
    """Hides the progress bar, asks whether to continue, and restores the bar.

    A declined prompt is final: the caller aborts the run and nothing is
    asked again.
    """

    def __init__(self, prompter: Prompter, progress: ProgressReporter) -> None:
        self.prompter = prompter
        self.progress = progress
        self.state = StepState.IDLE
        self.declined = False

    def confirm_continue(self, *, default: bool = True) -> bool:
        """Ask the operator whether to keep going."""
        if self.declined:
            return False

        self.state = StepState.PAUSED
        self.progress.pause()
        try:
            answer = self.prompter.confirm(messages.CONFIRM_CONTINUE, default=default)
        finally:
            self.state = StepState.IDLE

        if not answer:
            self.declined = True
            logger.info("run_declined_by_operator")
            self.progress.finish()
            return False

        self.progress.resume()
        return True
