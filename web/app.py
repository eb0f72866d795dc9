"""Flask JSON API for the client maintenance roster."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request, session

from roster import (
    AuthError,
    Client,
    ClientDraft,
    ClientRecordManager,
    DirectoryIdentityProvider,
    IdentityHandle,
    IntervalSpec,
    MaintenanceRecord,
    NotFoundError,
    Tier,
    UserDirectory,
    ValidationError,
    YamlClientStore,
    client_to_dict,
    parse_instant,
    parse_unit,
)

logger = logging.getLogger(__name__)

# Data files default to the project's data/ directory
DATA_DIR = Path(__file__).parent.parent / "data"

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
app.config["ROSTER_DATA_FILE"] = os.environ.get(
    "ROSTER_DATA_FILE", str(DATA_DIR / "clients.yaml")
)
app.config["ROSTER_USERS_FILE"] = os.environ.get(
    "ROSTER_USERS_FILE", str(DATA_DIR / "users.yaml")
)
# Callable returning "now"; tests swap in a fixed clock
app.config["ROSTER_CLOCK"] = datetime.now


class SessionIdentityProvider(DirectoryIdentityProvider):
    """Keeps the signed-in user id in the Flask session cookie."""

    def _load_user_id(self) -> Optional[str]:
        return session.get("user_id")

    def _store_user_id(self, user_id: Optional[str]) -> None:
        if user_id is None:
            session.pop("user_id", None)
        else:
            session["user_id"] = user_id


def get_manager() -> ClientRecordManager:
    """A manager for the current request, bound to the session's user."""
    directory = UserDirectory(current_app.config["ROSTER_USERS_FILE"])
    return ClientRecordManager(
        YamlClientStore(current_app.config["ROSTER_DATA_FILE"]),
        IdentityHandle(SessionIdentityProvider(directory)),
        clock=current_app.config["ROSTER_CLOCK"],
    )


def client_json(client: Client, now: datetime) -> Dict[str, Any]:
    """Stored fields plus id and the computed urgency."""
    data: Dict[str, Any] = {"id": client.id}
    data.update(client_to_dict(client))
    data["tier"] = client.urgency(now).name.lower()
    data["daysRemaining"] = client.days_remaining(now)
    return data


def request_json() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object body")
    return data


def parse_interval(data: Any) -> IntervalSpec:
    if not isinstance(data, dict) or "value" not in data:
        raise ValidationError("interval must be an object with value and unit")
    return IntervalSpec(data["value"], parse_unit(data.get("unit", "months")))


# Contact fields accepted on the wire -> Client attribute names
CONTACT_KEYS = {
    "name": "name",
    "phone": "phone",
    "email": "email",
    "address": "address",
    "job": "job_description",
}


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify(error=str(e)), 400


@app.errorhandler(NotFoundError)
def handle_not_found(e):
    return jsonify(error=str(e)), 404


@app.errorhandler(AuthError)
def handle_auth_error(e):
    return jsonify(error=str(e)), 401


@app.route("/login", methods=["POST"])
def login():
    data = request_json()
    user = get_manager().sign_in(data.get("email", ""), data.get("password", ""))
    return jsonify(id=user.id, email=user.email)


@app.route("/logout", methods=["POST"])
def logout():
    get_manager().sign_out()
    return jsonify(ok=True)


@app.route("/summary")
def summary():
    """Client counts per urgency tier."""
    counts = get_manager().urgency_summary()
    return jsonify({tier.name.lower(): counts[tier] for tier in Tier})


@app.route("/clients", methods=["GET"])
def list_clients():
    """All clients of the signed-in user, most urgent first."""
    manager = get_manager()
    manager.refresh()
    now = manager.clock()

    tier_filter = request.args.get("tier", "").lower() or None
    tiers = {t.name.lower(): t for t in Tier}
    if tier_filter is not None and tier_filter not in tiers:
        raise ValidationError(f"Unknown tier '{tier_filter}'")

    clients = manager.clients
    if tier_filter:
        clients = [c for c in clients if c.urgency(now) == tiers[tier_filter]]
    clients.sort(key=lambda c: (c.urgency(now).value, c.next_maintenance_date, c.code))
    return jsonify([client_json(c, now) for c in clients])


@app.route("/clients", methods=["POST"])
def create_client():
    data = request_json()
    draft = ClientDraft(
        name=data.get("name") or "",
        phone=data.get("phone") or "",
        email=data.get("email") or "",
        address=data.get("address") or "",
        job_description=data.get("job") or "",
    )
    manager = get_manager()
    client = manager.create_client(draft, parse_interval(data.get("interval")))
    return jsonify(client_json(client, manager.clock())), 201


@app.route("/clients/<client_id>", methods=["GET"])
def get_client(client_id: str):
    manager = get_manager()
    return jsonify(client_json(manager.get(client_id), manager.clock()))


@app.route("/clients/<client_id>", methods=["PATCH"])
def edit_client(client_id: str):
    """Edit contact fields and/or the interval."""
    data = request_json()
    unknown = sorted(set(data) - set(CONTACT_KEYS) - {"interval"})
    if unknown:
        raise ValidationError(f"Cannot edit field(s): {', '.join(unknown)}")

    manager = get_manager()
    client = manager.get(client_id)
    fields = {CONTACT_KEYS[k]: v for k, v in data.items() if k in CONTACT_KEYS}
    interval = parse_interval(data["interval"]) if "interval" in data else None
    if fields:
        client = manager.update_contact(client_id, **fields)
    if interval is not None:
        client = manager.change_interval(client_id, interval)
    return jsonify(client_json(client, manager.clock()))


@app.route("/clients/<client_id>", methods=["DELETE"])
def delete_client(client_id: str):
    get_manager().delete_client(client_id)
    return "", 204


@app.route("/clients/<client_id>/confirm", methods=["POST"])
def confirm_maintenance(client_id: str):
    """Record a completed maintenance and advance the due date."""
    data = request.get_json(silent=True) or {}
    record_service = data.get("recordService", True)
    if not isinstance(record_service, bool):
        raise ValidationError("recordService must be true or false")
    manager = get_manager()
    client = manager.confirm_maintenance(client_id, record_service=record_service)
    return jsonify(client_json(client, manager.clock()))


@app.route("/clients/<client_id>/notes", methods=["POST"])
def add_note(client_id: str):
    data = request_json()
    manager = get_manager()
    client = manager.append_note(client_id, data.get("note") or "")
    return jsonify(client_json(client, manager.clock())), 201


@app.route("/clients/<client_id>/notes", methods=["DELETE"])
def remove_note_by_value(client_id: str):
    """Remove entries by (date, note), for history entries without an id."""
    data = request_json()
    if "date" not in data:
        raise ValidationError("date is required")
    try:
        timestamp = parse_instant(data["date"])
    except ValueError:
        raise ValidationError(f"Invalid date '{data['date']}'")
    target = MaintenanceRecord(timestamp=timestamp, note=data.get("note"))
    manager = get_manager()
    client = manager.remove_note(client_id, target)
    return jsonify(client_json(client, manager.clock()))


@app.route("/clients/<client_id>/notes/<entry_id>", methods=["DELETE"])
def remove_note(client_id: str, entry_id: str):
    """Remove a history entry. An unknown entry id leaves the client unchanged."""
    manager = get_manager()
    client = manager.get(client_id)
    entry = client.get_entry(entry_id)
    if entry is not None:
        client = manager.remove_note(client_id, entry)
    return jsonify(client_json(client, manager.clock()))


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("ROSTER_LOG_LEVEL", "INFO"))
    app.run(debug=True, host="0.0.0.0", port=5001)
