#!/usr/bin/env python3
"""Tests for MaintenanceRecord class."""
import pytest
from datetime import datetime

from roster import MaintenanceRecord

WHEN = datetime(2024, 1, 15, 10, 0)


class TestMaintenanceRecord:
    """Tests for MaintenanceRecord class."""

    def test_service_entry_has_no_note(self):
        entry = MaintenanceRecord(WHEN)
        assert entry.note is None
        assert entry.entry_id is None
        assert entry.is_service

    def test_note_entry(self):
        entry = MaintenanceRecord(WHEN, "Replaced filter", "abc")
        assert entry.note == "Replaced filter"
        assert entry.entry_id == "abc"
        assert not entry.is_service

    def test_immutable(self):
        entry = MaintenanceRecord(WHEN, "x")
        with pytest.raises(AttributeError):
            entry.note = "y"

    def test_equality_ignores_entry_id(self):
        """Value equality is (timestamp, note)."""
        assert MaintenanceRecord(WHEN, "x", "1") == MaintenanceRecord(WHEN, "x", "2")


class TestMaintenanceRecordMatches:
    """Tests for MaintenanceRecord.matches."""

    def test_by_entry_id_when_both_have_one(self):
        a = MaintenanceRecord(WHEN, "same text", "id-a")
        b = MaintenanceRecord(WHEN, "same text", "id-b")
        assert not a.matches(b)
        assert a.matches(MaintenanceRecord(datetime(2020, 1, 1), "other", "id-a"))

    def test_by_value_when_id_missing(self):
        legacy = MaintenanceRecord(WHEN, "Called client")
        assert legacy.matches(MaintenanceRecord(WHEN, "Called client"))
        assert legacy.matches(MaintenanceRecord(WHEN, "Called client", "id-x"))
        assert not legacy.matches(MaintenanceRecord(WHEN, "Called client again"))
        assert not legacy.matches(MaintenanceRecord(datetime(2024, 1, 16), "Called client"))
