#!/usr/bin/env python3
"""Tests for ClientRecordManager sessions over a YAML store."""
import logging
import pytest
from datetime import datetime, timedelta

import yaml

from roster import (
    AuthError,
    ClientDraft,
    ClientRecordManager,
    DirectoryIdentityProvider,
    IdentityHandle,
    IdentityNotReadyError,
    IntervalSpec,
    IntervalUnit,
    MaintenanceRecord,
    NotFoundError,
    StaticIdentityProvider,
    Tier,
    User,
    UserDirectory,
    ValidationError,
    YamlClientStore,
)


class FakeClock:
    """Settable clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 5, 9, 0))  # Friday


@pytest.fixture
def store(tmp_path):
    return YamlClientStore(tmp_path / "clients.yaml")


@pytest.fixture
def manager(store, clock):
    identity = IdentityHandle(StaticIdentityProvider(User("owner-1", "owner@example.com")))
    return ClientRecordManager(store, identity, clock=clock)


def days(n):
    return IntervalSpec(n, IntervalUnit.DAYS)


class TestCreateClient:
    """Tests for ClientRecordManager.create_client."""

    def test_codes_are_sequential(self, manager):
        first = manager.create_client(ClientDraft(name="Rossi"), days(5))
        second = manager.create_client(ClientDraft(name="Bianchi"), days(5))
        assert (first.code, second.code) == ("A001", "A002")

    def test_persisted_with_id(self, manager, store):
        client = manager.create_client(ClientDraft(name="Rossi"), days(5))
        assert client.id is not None
        stored = store.get(client.id)
        assert stored.owner_id == "owner-1"
        assert stored.next_maintenance_date == datetime(2024, 1, 12, 9, 0)

    def test_blank_name_writes_nothing(self, manager, store):
        with pytest.raises(ValidationError):
            manager.create_client(ClientDraft(name=" "), days(5))
        assert store.list("owner-1") == []

    def test_code_collision_after_delete_is_logged(self, manager, caplog):
        """count + 1 reuses a code after a deletion; kept, but warned about."""
        a1 = manager.create_client(ClientDraft(name="Rossi"), days(5))
        manager.create_client(ClientDraft(name="Bianchi"), days(5))
        manager.delete_client(a1.id)
        with caplog.at_level(logging.WARNING, logger="roster.manager"):
            third = manager.create_client(ClientDraft(name="Verdi"), days(5))
        assert third.code == "A002"
        assert "already used" in caplog.text


class TestTransitions:
    """Tests for mutations going through the store."""

    @pytest.fixture
    def client(self, manager):
        return manager.create_client(ClientDraft(name="Rossi"), days(5))

    def test_confirm_maintenance(self, manager, store, clock, client):
        clock.now = datetime(2024, 2, 1, 14, 0)
        updated = manager.confirm_maintenance(client.id)
        assert updated.next_maintenance_date == datetime(2024, 2, 8, 14, 0)
        stored = store.get(client.id)
        assert stored.next_maintenance_date == datetime(2024, 2, 8, 14, 0)
        assert len(stored.history) == 1
        assert stored.history[0].is_service

    def test_confirm_twice_same_instant(self, manager, client):
        first = manager.confirm_maintenance(client.id, record_service=False)
        second = manager.confirm_maintenance(client.id, record_service=False)
        assert first.next_maintenance_date == second.next_maintenance_date

    def test_append_and_remove_note(self, manager, store, client):
        updated = manager.append_note(client.id, "Replaced filter")
        entry = updated.history[-1]
        assert store.get(client.id).history[-1].note == "Replaced filter"
        removed = manager.remove_note(client.id, entry)
        assert removed.history == []
        assert store.get(client.id).history == []

    def test_remove_unknown_note_writes_nothing(self, manager, store, client):
        before = store.filename.read_text()
        result = manager.remove_note(client.id, MaintenanceRecord(datetime(2020, 1, 1), "x"))
        assert result.history == []
        assert store.filename.read_text() == before

    def test_blank_note_rejected(self, manager, client):
        with pytest.raises(ValidationError):
            manager.append_note(client.id, "   ")

    def test_update_contact_sends_changed_fields(self, manager, store, client, monkeypatch):
        sent = {}
        original = store.update

        def spy(client_id, fields):
            sent.update(fields)
            original(client_id, fields)

        monkeypatch.setattr(store, "update", spy)
        manager.update_contact(client.id, phone="555", email="r@example.com")
        assert sent == {"phone": "555", "email": "r@example.com"}
        assert store.get(client.id).phone == "555"

    def test_change_interval(self, manager, store, client):
        updated = manager.change_interval(client.id, IntervalSpec(2, IntervalUnit.MONTHS))
        assert updated.next_maintenance_date == client.next_maintenance_date
        assert store.get(client.id).interval == IntervalSpec(2, IntervalUnit.MONTHS)

    def test_delete(self, manager, store, client):
        manager.delete_client(client.id)
        assert store.list("owner-1") == []
        assert manager.clients == []
        with pytest.raises(NotFoundError):
            manager.get(client.id)

    def test_unknown_client(self, manager):
        with pytest.raises(NotFoundError):
            manager.confirm_maintenance("missing")
        with pytest.raises(NotFoundError):
            manager.delete_client("missing")

    def test_deleted_elsewhere_surfaces_not_found(self, manager, store, client):
        """Last write wins: a record removed by another session is NotFound."""
        store.delete(client.id)
        with pytest.raises(NotFoundError):
            manager.append_note(client.id, "late note")


class TestSessionView:
    """Tests for the session cache, lookups and summaries."""

    def test_reads_own_writes_without_refresh(self, manager):
        client = manager.create_client(ClientDraft(name="Rossi"), days(5))
        manager.append_note(client.id, "note")
        assert manager.get(client.id).history[0].note == "note"

    def test_only_owner_clients(self, store, clock):
        other = ClientRecordManager(
            store, IdentityHandle(StaticIdentityProvider(User("owner-2", "o2"))), clock=clock
        )
        other.create_client(ClientDraft(name="Other"), days(5))
        mine = ClientRecordManager(
            store, IdentityHandle(StaticIdentityProvider(User("owner-1", "o1"))), clock=clock
        )
        assert mine.refresh() == []
        # Codes are per owner
        assert mine.create_client(ClientDraft(name="Mine"), days(5)).code == "A001"

    def test_find_by_code(self, manager):
        client = manager.create_client(ClientDraft(name="Rossi"), days(5))
        assert manager.find_by_code("a001").id == client.id
        with pytest.raises(NotFoundError):
            manager.find_by_code("A999")

    def test_clients_sorted_by_code(self, manager):
        for name in ("Rossi", "Bianchi", "Verdi"):
            manager.create_client(ClientDraft(name=name), days(5))
        assert [c.code for c in manager.clients] == ["A001", "A002", "A003"]

    def test_urgency_summary(self, manager, clock):
        manager.create_client(ClientDraft(name="Soon"), days(1))
        manager.create_client(ClientDraft(name="Later"), IntervalSpec(2, IntervalUnit.MONTHS))
        clock.now = clock.now + timedelta(days=30)
        summary = manager.urgency_summary()
        assert summary[Tier.EXPIRED] == 1
        assert summary[Tier.CRITICAL] == 0
        assert summary[Tier.WARNING] == 0
        assert summary[Tier.NORMAL] == 1


class TestIdentity:
    """Tests for sign-in flow and the identity gate."""

    @pytest.fixture
    def directory(self, tmp_path):
        d = UserDirectory(tmp_path / "users.yaml")
        d.add_user("rudy@example.com", "s3cret")
        return d

    def test_sign_in_loads_clients(self, directory, store, clock):
        manager = ClientRecordManager(
            store, IdentityHandle(DirectoryIdentityProvider(directory)), clock=clock
        )
        with pytest.raises(AuthError):
            manager.create_client(ClientDraft(name="Rossi"), days(5))
        user = manager.sign_in("rudy@example.com", "s3cret")
        manager.create_client(ClientDraft(name="Rossi"), days(5))
        assert [c.owner_id for c in manager.clients] == [user.id]

    def test_wrong_password(self, directory, store, clock):
        manager = ClientRecordManager(
            store, IdentityHandle(DirectoryIdentityProvider(directory)), clock=clock
        )
        with pytest.raises(AuthError):
            manager.sign_in("rudy@example.com", "wrong")

    def test_sign_out_clears_view(self, directory, store, clock):
        manager = ClientRecordManager(
            store, IdentityHandle(DirectoryIdentityProvider(directory)), clock=clock
        )
        manager.sign_in("rudy@example.com", "s3cret")
        manager.create_client(ClientDraft(name="Rossi"), days(5))
        manager.sign_out()
        assert manager.clients == []
        with pytest.raises(AuthError):
            manager.refresh()

    def test_uninitialized_identity(self, store, clock):
        manager = ClientRecordManager(store, IdentityHandle(), clock=clock)
        with pytest.raises(IdentityNotReadyError):
            manager.refresh()
