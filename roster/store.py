"""Store interface and the YAML-file store for client records."""

import abc
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Union

from .client import Client
from .errors import NotFoundError
from .loader import client_from_dict, client_to_dict, load_document, save_document

logger = logging.getLogger(__name__)


class ClientStore(abc.ABC):
    """Document store holding client records. Last write wins."""

    @abc.abstractmethod
    def list(self, owner_id: str) -> List[Client]:
        """All clients belonging to owner_id."""

    @abc.abstractmethod
    def get(self, client_id: str) -> Client:
        """Fetch one client; NotFoundError if absent."""

    @abc.abstractmethod
    def create(self, client: Client) -> str:
        """Persist a new client and return its id. Durable before returning."""

    @abc.abstractmethod
    def update(self, client_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite the given stored fields (camelCase keys) of a client."""

    @abc.abstractmethod
    def delete(self, client_id: str) -> None:
        """Remove a client for good."""


class YamlClientStore(ClientStore):
    """
    Keeps every client in a single YAML file.

    Each operation loads the raw YAML, changes it, and writes the whole file
    back, the same read-modify-write the rest of the roster relies on.
    """

    def __init__(self, filename: Union[str, Path], check_schema: bool = True):
        self.filename = Path(filename)
        self.check_schema = check_schema

    def _load(self) -> Dict[str, Any]:
        return load_document(self.filename, check_schema=self.check_schema)

    def _find(self, data: Dict[str, Any], client_id: str) -> Dict[str, Any]:
        for record in data["clients"]:
            if record.get("id") == client_id:
                return record
        raise NotFoundError(f"Client '{client_id}' not found")

    def list(self, owner_id: str) -> List[Client]:
        data = self._load()
        return [client_from_dict(r) for r in data["clients"] if r.get("ownerId") == owner_id]

    def get(self, client_id: str) -> Client:
        return client_from_dict(self._find(self._load(), client_id))

    def create(self, client: Client) -> str:
        data = self._load()
        client_id = uuid.uuid4().hex
        record = {"id": client_id}
        record.update(client_to_dict(client))
        data["clients"].append(record)
        save_document(self.filename, data)
        logger.info("Created client %s (%s) in %s", client.code, client_id, self.filename)
        return client_id

    def update(self, client_id: str, fields: Dict[str, Any]) -> None:
        data = self._load()
        record = self._find(data, client_id)
        # Normalized intervals replace the legacy field
        if "interval" in fields:
            record.pop("monthsInterval", None)
        record.update(fields)
        save_document(self.filename, data)
        logger.debug("Updated client %s fields: %s", client_id, ", ".join(fields))

    def delete(self, client_id: str) -> None:
        data = self._load()
        record = self._find(data, client_id)
        data["clients"].remove(record)
        save_document(self.filename, data)
        logger.info("Deleted client %s", client_id)
