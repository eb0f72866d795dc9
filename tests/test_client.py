#!/usr/bin/env python3
"""Tests for Client class."""
import pytest
from datetime import datetime, timedelta

from roster import Client, IntervalSpec, IntervalUnit, MaintenanceRecord, Tier

NOW = datetime(2024, 6, 3, 9, 0)


@pytest.fixture
def client():
    return Client(
        code="A001",
        name="Rossi Impianti",
        interval=IntervalSpec(6, IntervalUnit.MONTHS),
        next_maintenance_date=NOW + timedelta(days=5),
        owner_id="owner-1",
        history=[
            MaintenanceRecord(datetime(2024, 1, 10), None, "s1"),
            MaintenanceRecord(datetime(2024, 3, 2), "Boiler noisy", "n1"),
            MaintenanceRecord(datetime(2024, 2, 20), None, "s2"),
        ],
    )


class TestClient:
    """Tests for Client properties and lookups."""

    def test_defaults(self):
        c = Client("A002", "Bianchi", IntervalSpec(1), NOW, "owner-1")
        assert c.id is None
        assert c.history == []
        assert c.phone == ""
        assert c.job_description == ""

    def test_display_name(self, client):
        assert client.display_name == "A001 - Rossi Impianti"

    def test_last_service_ignores_notes(self, client):
        assert client.last_service.entry_id == "s2"

    def test_last_service_none_without_services(self):
        c = Client("A002", "Bianchi", IntervalSpec(1), NOW, "owner-1",
                   history=[MaintenanceRecord(NOW, "just a note")])
        assert c.last_service is None

    def test_urgency(self, client):
        assert client.urgency(NOW) == Tier.CRITICAL
        assert client.days_remaining(NOW) == 5

    def test_get_entry(self, client):
        assert client.get_entry("n1").note == "Boiler noisy"
        assert client.get_entry("missing") is None

    def test_get_history_sorted_leaves_storage_order(self, client):
        newest_first = client.get_history_sorted()
        assert [h.entry_id for h in newest_first] == ["n1", "s2", "s1"]
        assert [h.entry_id for h in client.get_history_sorted(reverse=False)] == ["s1", "s2", "n1"]
        assert [h.entry_id for h in client.history] == ["s1", "n1", "s2"]
