"""ClientRecordManager - one signed-in session over the roster."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from . import records
from .calculations import summarize_urgency
from .client import Client, ClientDraft
from .errors import AuthError, NotFoundError
from .history_entry import MaintenanceRecord
from .identity import IdentityHandle, User
from .interval import IntervalSpec
from .loader import client_to_dict
from .store import ClientStore
from .tier import Tier

logger = logging.getLogger(__name__)


class ClientRecordManager:
    """
    Applies record transitions for the signed-in owner and persists them.

    The clients loaded by refresh() are the session's view of the roster.
    Every mutation reads from that view, computes the next state, writes the
    changed fields to the store and updates the view with what it returns.
    There is no version check: concurrent writers overwrite each other.
    """

    def __init__(
        self,
        store: ClientStore,
        identity: IdentityHandle,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock
        self._clients: Dict[str, Client] = {}
        self._loaded_for: Optional[str] = None

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def sign_in(self, email: str, password: str) -> User:
        if not self.identity.provider.sign_in(email, password):
            raise AuthError("Invalid email or password")
        user = self.identity.require_user()
        self.refresh()
        return user

    def sign_out(self) -> None:
        self.identity.provider.sign_out()
        self._clients = {}
        self._loaded_for = None

    def current_owner(self) -> str:
        return self.identity.require_user().id

    # -------------------------------------------------------------------------
    # Session view
    # -------------------------------------------------------------------------

    def refresh(self) -> List[Client]:
        """Reload the owner's clients from the store."""
        owner_id = self.current_owner()
        self._clients = {c.id: c for c in self.store.list(owner_id)}
        self._loaded_for = owner_id
        return self.clients

    def _ensure_loaded(self) -> None:
        if self._loaded_for != self.current_owner():
            self.refresh()

    @property
    def clients(self) -> List[Client]:
        """Clients in the session view, by code."""
        return sorted(self._clients.values(), key=lambda c: c.code)

    def get(self, client_id: str) -> Client:
        self._ensure_loaded()
        try:
            return self._clients[client_id]
        except KeyError:
            raise NotFoundError(f"Client '{client_id}' not found") from None

    def find_by_code(self, code: str) -> Client:
        self._ensure_loaded()
        wanted = code.strip().upper()
        for client in self._clients.values():
            if client.code.upper() == wanted:
                return client
        raise NotFoundError(f"No client with code '{code}'")

    def urgency_summary(self, now: Optional[datetime] = None) -> Dict[Tier, int]:
        self._ensure_loaded()
        return summarize_urgency(self._clients.values(), now or self.clock())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_client(self, draft: ClientDraft, interval: IntervalSpec) -> Client:
        self._ensure_loaded()
        owner_id = self.current_owner()
        client = records.create_client(
            draft, interval, owner_id, self.clock(), existing_count=len(self._clients)
        )
        if any(c.code == client.code for c in self._clients.values()):
            logger.warning(
                "Generated code %s is already used by another client of %s",
                client.code,
                owner_id,
            )
        client.id = self.store.create(client)
        self._clients[client.id] = client
        return client

    def confirm_maintenance(self, client_id: str, record_service: bool = True) -> Client:
        before = self.get(client_id)
        after = records.confirm_maintenance(before, self.clock(), record_service)
        return self._save(before, after)

    def append_note(self, client_id: str, note_text: str) -> Client:
        before = self.get(client_id)
        return self._save(before, records.append_note(before, note_text, self.clock()))

    def remove_note(self, client_id: str, target: MaintenanceRecord) -> Client:
        before = self.get(client_id)
        return self._save(before, records.remove_note(before, target))

    def update_contact(self, client_id: str, **fields) -> Client:
        before = self.get(client_id)
        return self._save(before, records.update_contact(before, **fields))

    def change_interval(self, client_id: str, interval: IntervalSpec) -> Client:
        before = self.get(client_id)
        return self._save(before, records.change_interval(before, interval))

    def delete_client(self, client_id: str) -> None:
        """Delete for good. There is no undo."""
        self.get(client_id)
        self.store.delete(client_id)
        del self._clients[client_id]

    def _save(self, before: Client, after: Client) -> Client:
        """Write the fields that changed between two states of a client."""
        changed = _changed_fields(client_to_dict(before), client_to_dict(after))
        if changed:
            self.store.update(after.id, changed)
        self._clients[after.id] = after
        return after


def _changed_fields(before: Dict[str, Any], after: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in after.items() if before.get(key) != value}
