"""Before/after field comparison for change-tracking records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from conveyor.services.protocols import ChangeTracking


@dataclass(frozen=True)
class FieldChange:
    """One changed field."""

    field: str
    before: Any
    after: Any

    def as_row(self) -> list[Any]:
        return [self.field, self.before, self.after]


class DiffCapture:
    """Snapshots a record before its handler runs and reports what changed."""

    def snapshot(self, record: Any) -> dict[str, Any]:
        """Copy the record's original state, or an empty dict if it cannot track changes."""
        if not isinstance(record, ChangeTracking):
            return {}
        return dict(record.get_original())

    def supports(self, record: Any) -> bool:
        return isinstance(record, ChangeTracking)

    def changes(self, record: ChangeTracking, snapshot: dict[str, Any]) -> list[FieldChange]:
        """Pair each changed field with its value from the snapshot."""
        return [
            FieldChange(field=key, before=snapshot.get(key), after=value)
            for key, value in record.get_changes().items()
        ]
