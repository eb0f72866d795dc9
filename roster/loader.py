"""YAML loading, saving and wire-format conversion for client records."""

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dateutil import parser as date_parser
from jsonschema import validate

from .client import Client
from .history_entry import MaintenanceRecord
from .interval import IntervalSpec, IntervalUnit, parse_unit

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"

# Old records carry a months-only interval stored as a business-day count
LEGACY_DAYS_PER_MONTH = 22
DEFAULT_INTERVAL = IntervalSpec(12, IntervalUnit.MONTHS)


def load_schema() -> dict:
    """Load the JSON schema for roster documents."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def parse_instant(value: Union[str, date, datetime]) -> datetime:
    """
    Parse an ISO-8601 instant into a naive datetime on the host's local clock.

    Strings with an offset (e.g. '2024-01-31T09:00:00.000Z') are converted
    to local time first. A bare date (an unquoted YAML date) means midnight.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time())
    else:
        dt = date_parser.isoparse(value)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_instant(dt: datetime) -> str:
    return dt.isoformat()


def _parse_interval(dct: Dict[str, Any]) -> IntervalSpec:
    """Read the interval, normalizing legacy monthsInterval records."""
    interval = dct.get("interval")
    if interval:
        return IntervalSpec(int(interval["value"]), parse_unit(interval["unit"]))
    months = dct.get("monthsInterval")
    if months:
        return IntervalSpec(int(months) * LEGACY_DAYS_PER_MONTH, IntervalUnit.DAYS)
    logger.debug("Client %s has no interval, using default", dct.get("code"))
    return DEFAULT_INTERVAL


def entry_from_dict(dct: Dict[str, Any]) -> MaintenanceRecord:
    return MaintenanceRecord(
        timestamp=parse_instant(dct["date"]),
        note=dct.get("note"),
        entry_id=dct.get("id"),
    )


def entry_to_dict(entry: MaintenanceRecord) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if entry.entry_id is not None:
        d["id"] = entry.entry_id
    d["date"] = format_instant(entry.timestamp)
    if entry.note is not None:
        d["note"] = entry.note
    return d


def client_from_dict(dct: Dict[str, Any], client_id: Optional[str] = None) -> Client:
    """Parse a stored record (camelCase keys) into a Client."""
    return Client(
        id=client_id if client_id is not None else dct.get("id"),
        code=dct["code"],
        name=dct["name"],
        phone=dct.get("phone") or "",
        email=dct.get("email") or "",
        address=dct.get("address") or "",
        job_description=dct.get("job") or "",
        interval=_parse_interval(dct),
        next_maintenance_date=parse_instant(dct["maintenanceDate"]),
        owner_id=dct["ownerId"],
        history=[entry_from_dict(h) for h in dct.get("history") or []],
    )


def client_to_dict(client: Client) -> Dict[str, Any]:
    """Serialize a Client to the stored format (camelCase keys, no id)."""
    return {
        "code": client.code,
        "name": client.name,
        "phone": client.phone,
        "email": client.email,
        "address": client.address,
        "job": client.job_description,
        "interval": {"value": client.interval.value, "unit": client.interval.unit.value},
        "maintenanceDate": format_instant(client.next_maintenance_date),
        "ownerId": client.owner_id,
        "history": [entry_to_dict(h) for h in client.history],
    }


def load_document(filename: Union[str, Path], check_schema: bool = True) -> Dict[str, Any]:
    """
    Load a roster YAML file. A missing file is an empty roster.

    Schema violations raise jsonschema.ValidationError unchanged.
    """
    path = Path(filename)
    if not path.exists():
        return {"clients": []}
    with open(path, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    if data.get("clients") is None:
        data["clients"] = []
    if check_schema:
        validate(instance=data, schema=load_schema())
    return data


def save_document(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )
