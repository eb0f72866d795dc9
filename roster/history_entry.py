"""MaintenanceRecord class for a client's service and notes log."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def new_entry_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class MaintenanceRecord:
    """
    A timestamped history entry: a completed service (no note) or a note.

    entry_id is assigned when the entry is created. Entries loaded from old
    data may have none; those are identified by (timestamp, note) alone.
    """

    timestamp: datetime
    note: Optional[str] = None
    entry_id: Optional[str] = field(default=None, compare=False)

    @property
    def is_service(self) -> bool:
        return self.note is None

    def matches(self, other: "MaintenanceRecord") -> bool:
        """True if other refers to this same entry."""
        if self.entry_id is not None and other.entry_id is not None:
            return self.entry_id == other.entry_id
        return self.timestamp == other.timestamp and self.note == other.note
