"""Test wire <-> column field mapping."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from colortouch.errors import InvalidDataError
from colortouch.models import Reminder
from colortouch.sync.entities import EntityKind
from colortouch.sync.field_mapper import incoming_updated_at, record_to_wire, wire_to_columns


def test_wire_to_columns_drops_unknown_and_system_keys():
    columns = wire_to_columns(EntityKind.PAYMENT, {
        "amount": 500,
        "paymentMethod": "CARD",
        "orderId": "order_1",
        "id": "spoofed",
        "syncStatus": "SYNCED",
        "favouriteColour": "teal",
    })
    assert columns == {"amount": 500, "payment_method": "CARD", "order_id": "order_1"}


def test_wire_to_columns_parses_dates():
    columns = wire_to_columns(EntityKind.REMINDER, {"reminderDate": "2026-04-01T09:30:00+05:30"})
    assert columns["reminder_date"] == datetime(2026, 4, 1, 4, 0, tzinfo=timezone.utc)


def test_wire_to_columns_allows_clearing_dates():
    assert wire_to_columns(EntityKind.PAYMENT, {"paidAt": None}) == {"paid_at": None}


def test_bad_dates_raise():
    with pytest.raises(InvalidDataError):
        wire_to_columns(EntityKind.PAYMENT, {"paidAt": "soon"})
    with pytest.raises(InvalidDataError):
        incoming_updated_at({"updatedAt": "later"})


def test_incoming_updated_at_epoch_millis():
    assert incoming_updated_at({"updatedAt": 0}) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert incoming_updated_at({}) is None


def test_record_to_wire():
    reminder = Reminder(
        id="rem-1",
        user_id="user-1",
        title="Call",
        reminder_date=datetime(2026, 4, 1, 9, 30),
        is_completed=False,
    )
    wire = record_to_wire(EntityKind.REMINDER, reminder)
    assert wire["id"] == "rem-1"
    assert wire["userId"] == "user-1"
    assert wire["reminderDate"] == "2026-04-01T09:30:00Z"
    assert wire["isCompleted"] is False
    assert wire["leadId"] is None
