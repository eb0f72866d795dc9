"""
Client roster maintenance tracking.

This package provides the models and scheduling logic for a client roster:
- Tier: Urgency levels (EXPIRED, CRITICAL, WARNING, NORMAL)
- IntervalSpec: Service cadence in business days or calendar months
- MaintenanceRecord: Service and note history entries
- Client: A customer record with its due date and history
- records: Pure transitions (create, confirm, notes, edits)
- ClientRecordManager: A signed-in session that persists transitions
"""

from .errors import (
    RosterError,
    ValidationError,
    NotFoundError,
    AuthError,
    IdentityNotReadyError,
)
from .tier import Tier
from .interval import IntervalSpec, IntervalUnit, parse_unit
from .history_entry import MaintenanceRecord
from .client import Client, ClientDraft
from .calculations import (
    add_business_days,
    add_months,
    compute_next_date,
    classify_urgency,
    days_until,
    summarize_urgency,
)
from .records import (
    make_code,
    create_client,
    confirm_maintenance,
    append_note,
    remove_note,
    update_contact,
    change_interval,
)
from .loader import client_from_dict, client_to_dict, parse_instant
from .store import ClientStore, YamlClientStore
from .identity import (
    User,
    IdentityProvider,
    UserDirectory,
    DirectoryIdentityProvider,
    StaticIdentityProvider,
    IdentityHandle,
)
from .manager import ClientRecordManager

__all__ = [
    "RosterError",
    "ValidationError",
    "NotFoundError",
    "AuthError",
    "IdentityNotReadyError",
    "Tier",
    "IntervalSpec",
    "IntervalUnit",
    "parse_unit",
    "MaintenanceRecord",
    "Client",
    "ClientDraft",
    "add_business_days",
    "add_months",
    "compute_next_date",
    "classify_urgency",
    "days_until",
    "summarize_urgency",
    "make_code",
    "create_client",
    "confirm_maintenance",
    "append_note",
    "remove_note",
    "update_contact",
    "change_interval",
    "client_from_dict",
    "client_to_dict",
    "parse_instant",
    "ClientStore",
    "YamlClientStore",
    "User",
    "IdentityProvider",
    "UserDirectory",
    "DirectoryIdentityProvider",
    "StaticIdentityProvider",
    "IdentityHandle",
    "ClientRecordManager",
]
