"""Pure state transitions for Client records."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from .calculations import compute_next_date
from .client import CONTACT_FIELDS, Client, ClientDraft
from .errors import ValidationError
from .history_entry import MaintenanceRecord, new_entry_id
from .interval import IntervalSpec

logger = logging.getLogger(__name__)

CODE_PREFIX = "A"
CODE_DIGITS = 3


def make_code(index: int) -> str:
    """Display code for the index-th client of an owner: 1 -> 'A001'."""
    return f"{CODE_PREFIX}{index:0{CODE_DIGITS}d}"


def _require_text(value: Optional[str], what: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{what} cannot be empty")
    return value


def create_client(
    draft: ClientDraft,
    interval: IntervalSpec,
    owner_id: str,
    now: datetime,
    existing_count: int = 0,
) -> Client:
    """
    Build a new, unsaved Client.

    The code comes from the owner's current client count plus one, so two
    clients created concurrently (or after a deletion) can end up sharing
    a code. Callers that know the existing codes should check for that.
    """
    _require_text(draft.name, "Client name")
    if not isinstance(interval, IntervalSpec):
        raise ValidationError("A client needs an interval")
    return Client(
        code=make_code(existing_count + 1),
        name=draft.name,
        phone=draft.phone,
        email=draft.email,
        address=draft.address,
        job_description=draft.job_description,
        interval=interval,
        next_maintenance_date=compute_next_date(interval, now),
        owner_id=owner_id,
        history=[],
    )


def confirm_maintenance(
    client: Client, now: datetime, record_service: bool = True
) -> Client:
    """Advance the due date from now; optionally log the service in history."""
    history = list(client.history)
    if record_service:
        history.append(MaintenanceRecord(timestamp=now, entry_id=new_entry_id()))
    return replace(
        client,
        next_maintenance_date=compute_next_date(client.interval, now),
        history=history,
    )


def append_note(client: Client, note_text: str, now: datetime) -> Client:
    _require_text(note_text, "Note")
    entry = MaintenanceRecord(timestamp=now, note=note_text, entry_id=new_entry_id())
    return replace(client, history=client.history + [entry])


def remove_note(client: Client, target: MaintenanceRecord) -> Client:
    """Drop entries matching target. Nothing matching is not an error."""
    history = [h for h in client.history if not h.matches(target)]
    if len(history) == len(client.history):
        logger.debug("No history entry of %s matches %r", client.code, target)
        return client
    return replace(client, history=history)


def update_contact(client: Client, **fields) -> Client:
    """Edit contact fields (name, phone, email, address, job_description)."""
    unknown = sorted(set(fields) - set(CONTACT_FIELDS))
    if unknown:
        raise ValidationError(f"Cannot edit field(s): {', '.join(unknown)}")
    if "name" in fields:
        _require_text(fields["name"], "Client name")
    changes = {k: ("" if v is None else v) for k, v in fields.items()}
    return replace(client, **changes)


def change_interval(client: Client, interval: IntervalSpec) -> Client:
    """Swap the interval. The due date moves on the next confirmation only."""
    if not isinstance(interval, IntervalSpec):
        raise ValidationError("A client needs an interval")
    return replace(client, interval=interval)
