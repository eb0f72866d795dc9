#!/usr/bin/env python3
"""
Unified CLI for the client maintenance roster.

Commands:
  status       - Show clients grouped by urgency (expired, critical, ...)
  list         - List all clients with their next maintenance date
  add          - Add a new client
  confirm      - Record a completed maintenance and advance the due date
  note         - Add a note to a client's history
  remove-note  - Remove a history entry
  history      - View a client's history
  edit         - Edit contact details or the service interval
  delete       - Delete a client
  add-user     - Add a user who can sign in to the web app
"""

import argparse
import getpass
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from roster import (
    Client,
    ClientDraft,
    ClientRecordManager,
    IdentityHandle,
    IntervalSpec,
    MaintenanceRecord,
    RosterError,
    StaticIdentityProvider,
    Tier,
    User,
    UserDirectory,
    YamlClientStore,
    parse_instant,
    parse_unit,
)

DEFAULT_OWNER = "local"

# =============================================================================
# Formatting helpers
# =============================================================================


def format_date(dt: Optional[datetime]) -> str:
    """Format a date for display."""
    return dt.strftime("%Y-%m-%d") if dt is not None else "-"


def format_timestamp(dt: Optional[datetime]) -> str:
    return dt.strftime("%Y-%m-%d %H:%M") if dt is not None else "-"


def format_days_remaining(days: Optional[int]) -> str:
    """Format remaining days for display (e.g., '12d', 'today' or '-3d')."""
    if days is None:
        return "-"
    if days == 0:
        return "today"
    return f"{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def make_client_table(clients: List[Client], now: datetime) -> List[List[str]]:
    """Convert clients to table rows."""
    rows = []
    for client in clients:
        rows.append(
            [
                client.code,
                client.name,
                client.phone or "-",
                client.interval.display_name,
                format_date(client.next_maintenance_date),
                format_days_remaining(client.days_remaining(now)),
            ]
        )
    return rows


def make_history_table(entries: List[MaintenanceRecord]) -> List[List[str]]:
    """Convert history entries to table rows."""
    rows = []
    for entry in entries:
        rows.append(
            [
                entry.entry_id or "-",
                format_timestamp(entry.timestamp),
                "service" if entry.is_service else "note",
                truncate(entry.note, max_len=50),
            ]
        )
    return rows


CLIENT_HEADERS = ["Code", "Name", "Phone", "Interval", "Due", "Remaining"]

# =============================================================================
# Commands
# =============================================================================


def cmd_status(manager: ClientRecordManager, args) -> int:
    """Show clients grouped by urgency tier."""
    now = manager.clock()
    clients = manager.clients
    summary = manager.urgency_summary(now)

    print(f"Owner: {manager.current_owner()}")
    print(f"Clients: {len(clients)}")
    print("  ".join(f"{tier.label}: {summary[tier]}" for tier in Tier))
    print()

    for tier in Tier:
        if args.tier and tier.name.lower() != args.tier:
            continue
        in_tier = sorted(
            [c for c in clients if c.urgency(now) == tier],
            key=lambda c: (c.next_maintenance_date, c.code),
        )
        if not in_tier:
            continue
        print(f"{tier.name}:")
        print(tabulate(make_client_table(in_tier, now), headers=CLIENT_HEADERS, tablefmt="simple"))
        print()

    return 0


def cmd_list(manager: ClientRecordManager, args) -> int:
    """List all clients."""
    now = manager.clock()
    clients = manager.clients
    if not clients:
        print("No clients yet.")
        return 0
    print(tabulate(make_client_table(clients, now), headers=CLIENT_HEADERS, tablefmt="simple"))
    return 0


def cmd_add(manager: ClientRecordManager, args) -> int:
    """Add a new client."""
    draft = ClientDraft(
        name=args.name,
        phone=args.phone or "",
        email=args.email or "",
        address=args.address or "",
        job_description=args.job or "",
    )
    interval = IntervalSpec(args.every, parse_unit(args.unit))
    client = manager.create_client(draft, interval)
    print(f"Added {client.display_name}")
    print(f"  Interval: {client.interval.display_name}")
    print(f"  Due:      {format_date(client.next_maintenance_date)}")
    return 0


def cmd_confirm(manager: ClientRecordManager, args) -> int:
    """Record a completed maintenance."""
    client = manager.find_by_code(args.code)
    old_due = client.next_maintenance_date
    client = manager.confirm_maintenance(client.id, record_service=not args.no_history)
    print(f"Client: {client.display_name}")
    print(f"Previous due: {format_date(old_due)}")
    print(f"Next due:     {format_date(client.next_maintenance_date)}")
    return 0


def cmd_note(manager: ClientRecordManager, args) -> int:
    """Add a note to a client's history."""
    client = manager.find_by_code(args.code)
    client = manager.append_note(client.id, args.text)
    print(f"Note added to {client.display_name} ({len(client.history)} entries)")
    return 0


def cmd_remove_note(manager: ClientRecordManager, args) -> int:
    """Remove a history entry by its id."""
    client = manager.find_by_code(args.code)
    entry = client.get_entry(args.entry_id)
    if entry is None:
        print(f"Error: No history entry '{args.entry_id}' for {client.display_name}")
        return 1
    client = manager.remove_note(client.id, entry)
    print(f"Entry removed from {client.display_name}")
    return 0


def cmd_history(manager: ClientRecordManager, args) -> int:
    """View a client's history."""
    client = manager.find_by_code(args.code)
    entries = client.get_history_sorted(reverse=not args.asc)
    if args.notes_only:
        entries = [e for e in entries if not e.is_service]

    last_svc = client.last_service
    print(f"Client: {client.display_name}")
    print(f"Interval: {client.interval.display_name}")
    print(f"Next due: {format_date(client.next_maintenance_date)}")
    if last_svc:
        print(f"Last service: {format_timestamp(last_svc.timestamp)}")
    print(f"History entries: {len(client.history)}")
    print()

    if not entries:
        print("No history entries found.")
        return 0

    headers = ["Id", "Date", "Kind", "Note"]
    print(tabulate(make_history_table(entries), headers=headers, tablefmt="simple"))
    return 0


def cmd_edit(manager: ClientRecordManager, args) -> int:
    """Edit contact details and/or the service interval."""
    client = manager.find_by_code(args.code)
    fields = {
        name: value
        for name, value in (
            ("name", args.name),
            ("phone", args.phone),
            ("email", args.email),
            ("address", args.address),
            ("job_description", args.job),
        )
        if value is not None
    }
    if args.every is None and args.unit is not None:
        print("Error: --unit needs --every")
        return 1
    interval = None
    if args.every is not None:
        unit = parse_unit(args.unit) if args.unit else client.interval.unit
        interval = IntervalSpec(args.every, unit)
    if fields:
        client = manager.update_contact(client.id, **fields)
    if interval is not None:
        client = manager.change_interval(client.id, interval)
    print(f"Updated {client.display_name}")
    return 0


def cmd_delete(manager: ClientRecordManager, args) -> int:
    """Delete a client."""
    client = manager.find_by_code(args.code)
    if not args.yes:
        answer = input(f"Delete {client.display_name}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return 0
    manager.delete_client(client.id)
    print(f"Deleted {client.display_name}")
    return 0


def cmd_add_user(args) -> int:
    """Add a user to the users file."""
    users_file = args.users_file or args.data_file.with_name("users.yaml")
    password = args.password or getpass.getpass("Password: ")
    user = UserDirectory(users_file).add_user(args.email, password)
    print(f"Added user {user.email} ({user.id}) to {users_file}")
    return 0


# =============================================================================
# Main
# =============================================================================


def parse_now(value: str) -> datetime:
    """argparse type for --now: a date or an ISO-8601 instant."""
    try:
        return parse_instant(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Client maintenance roster",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s clients.yaml status
  %(prog)s clients.yaml status --tier critical
  %(prog)s clients.yaml add "Rossi Impianti" --phone 0123 --every 6 --unit months
  %(prog)s clients.yaml confirm A001
  %(prog)s clients.yaml note A001 "Replaced filter"
  %(prog)s clients.yaml history A001
  %(prog)s clients.yaml edit A001 --every 10 --unit days
""",
    )
    parser.add_argument("data_file", type=Path, help="Path to roster YAML file")
    parser.add_argument(
        "--owner",
        default=os.environ.get("ROSTER_OWNER", DEFAULT_OWNER),
        help="Owner id whose clients to work on (default: $ROSTER_OWNER or 'local')",
    )
    parser.add_argument(
        "--now",
        type=parse_now,
        help="Pretend the current time is this date/instant (YYYY-MM-DD)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="Show clients by urgency")
    status_parser.add_argument(
        "--tier",
        choices=[t.name.lower() for t in Tier],
        help="Only show one tier",
    )

    subparsers.add_parser("list", help="List all clients")

    add_parser = subparsers.add_parser("add", help="Add a new client")
    add_parser.add_argument("name", type=str, help="Client name")
    add_parser.add_argument("--phone", type=str)
    add_parser.add_argument("--email", type=str)
    add_parser.add_argument("--address", type=str)
    add_parser.add_argument("--job", type=str, help="Job description")
    add_parser.add_argument(
        "--every", type=int, default=12, help="Interval length (default: 12)"
    )
    add_parser.add_argument(
        "--unit",
        choices=["days", "months"],
        default="months",
        help="Interval unit; days are business days (default: months)",
    )

    confirm_parser = subparsers.add_parser("confirm", help="Record a completed maintenance")
    confirm_parser.add_argument("code", type=str, help="Client code (e.g., A001)")
    confirm_parser.add_argument(
        "--no-history",
        action="store_true",
        help="Advance the due date without adding a history entry",
    )

    note_parser = subparsers.add_parser("note", help="Add a note")
    note_parser.add_argument("code", type=str)
    note_parser.add_argument("text", type=str)

    remove_note_parser = subparsers.add_parser("remove-note", help="Remove a history entry")
    remove_note_parser.add_argument("code", type=str)
    remove_note_parser.add_argument("entry_id", type=str, help="Id shown by 'history'")

    history_parser = subparsers.add_parser("history", help="View a client's history")
    history_parser.add_argument("code", type=str)
    history_parser.add_argument(
        "--asc", action="store_true", help="Oldest first instead of newest first"
    )
    history_parser.add_argument(
        "--notes-only", action="store_true", help="Hide service entries"
    )

    edit_parser = subparsers.add_parser("edit", help="Edit a client")
    edit_parser.add_argument("code", type=str)
    edit_parser.add_argument("--name", type=str)
    edit_parser.add_argument("--phone", type=str)
    edit_parser.add_argument("--email", type=str)
    edit_parser.add_argument("--address", type=str)
    edit_parser.add_argument("--job", type=str)
    edit_parser.add_argument("--every", type=int)
    edit_parser.add_argument("--unit", choices=["days", "months"])

    delete_parser = subparsers.add_parser("delete", help="Delete a client")
    delete_parser.add_argument("code", type=str)
    delete_parser.add_argument("--yes", action="store_true", help="Do not ask")

    add_user_parser = subparsers.add_parser("add-user", help="Add a web user")
    add_user_parser.add_argument("email", type=str)
    add_user_parser.add_argument("--password", type=str)
    add_user_parser.add_argument(
        "--users-file",
        type=Path,
        default=os.environ.get("ROSTER_USERS_FILE"),
        help="Users YAML file (default: users.yaml beside the data file)",
    )

    return parser


COMMANDS = {
    "status": cmd_status,
    "list": cmd_list,
    "add": cmd_add,
    "confirm": cmd_confirm,
    "note": cmd_note,
    "remove-note": cmd_remove_note,
    "history": cmd_history,
    "edit": cmd_edit,
    "delete": cmd_delete,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else os.environ.get("ROSTER_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "add-user":
            return cmd_add_user(args)

        identity = IdentityHandle(StaticIdentityProvider(User(args.owner, args.owner)))
        now = args.now
        manager = ClientRecordManager(
            YamlClientStore(args.data_file),
            identity,
            clock=(lambda: now) if now is not None else datetime.now,
        )
        manager.refresh()
        return COMMANDS[args.command](manager, args)
    except RosterError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
