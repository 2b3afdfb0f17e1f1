"""Exit codes and phase outcomes for a run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit status."""

    SUCCESS = 0
    FAILURE = 1
    INVALID = 2


@dataclass(frozen=True)
class Completed:
    """The phase ran to completion."""

    code: ExitCode = ExitCode.SUCCESS


@dataclass(frozen=True)
class Aborted:
    """The run stopped early; ``message`` is printed when non-empty."""

    message: str = ""
    code: ExitCode = ExitCode.FAILURE


@dataclass(frozen=True)
class Failed:
    """An unrecovered error that must propagate to the process boundary."""

    error: BaseException

    @property
    def code(self) -> ExitCode:
        return ExitCode.FAILURE


Outcome = Completed | Aborted | Failed

COMPLETED = Completed()


def abort(message: str = "", code: ExitCode = ExitCode.FAILURE) -> Aborted:
    """Build an abort outcome."""
    return Aborted(message=message, code=code)


def invalid(message: str) -> Aborted:
    """Build an abort outcome for a setup or contract violation."""
    return Aborted(message=message, code=ExitCode.INVALID)
