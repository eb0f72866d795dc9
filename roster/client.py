"""Client class - the aggregate for one roster record."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .calculations import classify_urgency, days_until
from .history_entry import MaintenanceRecord
from .interval import IntervalSpec
from .tier import Tier

CONTACT_FIELDS = ("name", "phone", "email", "address", "job_description")


@dataclass
class ClientDraft:
    """User-supplied fields of a client that does not exist yet."""

    name: str
    phone: str = ""
    email: str = ""
    address: str = ""
    job_description: str = ""


@dataclass
class Client:
    """
    A customer record with its service interval and history.

    id is assigned by the store and stays None until the client is persisted.
    Transitions in records.py never mutate a Client; they return a new one.
    """

    code: str
    name: str
    interval: IntervalSpec
    next_maintenance_date: datetime
    owner_id: str
    phone: str = ""
    email: str = ""
    address: str = ""
    job_description: str = ""
    history: List[MaintenanceRecord] = field(default_factory=list)
    id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.code} - {self.name}"

    @property
    def last_service(self) -> Optional[MaintenanceRecord]:
        """Most recent completed service, ignoring plain notes."""
        services = [h for h in self.history if h.is_service]
        if not services:
            return None
        return max(services, key=lambda h: h.timestamp)

    def urgency(self, now: datetime) -> Tier:
        return classify_urgency(self.next_maintenance_date, now)

    def days_remaining(self, now: datetime) -> int:
        return days_until(self.next_maintenance_date, now)

    def get_entry(self, entry_id: str) -> Optional[MaintenanceRecord]:
        for entry in self.history:
            if entry.entry_id == entry_id:
                return entry
        return None

    def get_history_sorted(self, reverse: bool = True) -> List[MaintenanceRecord]:
        """History ordered by timestamp for display; storage order is untouched."""
        return sorted(self.history, key=lambda h: h.timestamp, reverse=reverse)
