"""Per-record failure kept for the end-of-run report."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CollectedException(BaseModel):
    """A record label paired with the error its handler raised."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    label: str
    error: BaseException
    message: str

    @classmethod
    def from_error(cls, label: str, error: BaseException) -> CollectedException:
        return cls(label=label, error=error, message=str(error) or repr(error))

    @property
    def error_type(self) -> str:
        return type(self.error).__name__

    def as_row(self) -> list[str]:
        """Columns for the summary table: label, error kind, message."""
        return [self.label, self.error_type, self.message]

    def __str__(self) -> str:
        return self.message
