"""Field mapping between the JSON wire format (camelCase) and model columns."""

from __future__ import annotations

from typing import Any

from ..errors import InvalidDataError
from ..timeutil import isoformat, parse_timestamp
from .entities import EntityKind

# Wire field name -> model attribute
LEAD_FIELD_MAP: dict[str, str] = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "company": "company",
    "source": "source",
    "status": "status",
    "tag": "tag",
    "notes": "notes",
    "amount": "amount",
    "duration": "duration",
}

PAYMENT_FIELD_MAP: dict[str, str] = {
    "amount": "amount",
    "currency": "currency",
    "status": "status",
    "paymentMethod": "payment_method",
    "orderId": "order_id",
    "razorpayPaymentId": "razorpay_payment_id",
    "receipt": "receipt",
    "paidAt": "paid_at",
}

REMINDER_FIELD_MAP: dict[str, str] = {
    "title": "title",
    "description": "description",
    "reminderDate": "reminder_date",
    "reminderType": "reminder_type",
    "priority": "priority",
    "isCompleted": "is_completed",
    "leadId": "lead_id",
}

FIELD_MAPS: dict[EntityKind, dict[str, str]] = {
    EntityKind.LEAD: LEAD_FIELD_MAP,
    EntityKind.PAYMENT: PAYMENT_FIELD_MAP,
    EntityKind.REMINDER: REMINDER_FIELD_MAP,
}

DATETIME_FIELDS = {"paid_at", "reminder_date"}

# Columns every syncable model carries; written by the server, not the client.
SYSTEM_FIELD_MAP: dict[str, str] = {
    "id": "id",
    "userId": "user_id",
    "syncStatus": "sync_status",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "lastSyncedAt": "last_synced_at",
}


def wire_to_columns(kind: EntityKind, data: dict[str, Any]) -> dict[str, Any]:
    """Convert an incoming ``data`` dict to column kwargs.

    Unknown keys and server-controlled keys are dropped.
    """
    result: dict[str, Any] = {}
    for wire_key, column in FIELD_MAPS[kind].items():
        if wire_key not in data:
            continue
        value = data[wire_key]
        if column in DATETIME_FIELDS:
            try:
                value = parse_timestamp(value)
            except ValueError as e:
                raise InvalidDataError(f"{wire_key}: {e}") from None
        result[column] = value
    return result


def incoming_updated_at(data: dict[str, Any]):
    """Parse ``data.updatedAt``; None when absent."""
    try:
        return parse_timestamp(data.get("updatedAt"))
    except ValueError as e:
        raise InvalidDataError(f"updatedAt: {e}") from None


def record_to_wire(kind: EntityKind, record) -> dict[str, Any]:
    """Serialize a model instance to the JSON wire format."""
    result: dict[str, Any] = {}
    for wire_key, column in SYSTEM_FIELD_MAP.items():
        value = getattr(record, column, None)
        if column == "sync_status" and value is not None:
            value = getattr(value, "value", value)
        elif column.endswith("_at"):
            value = isoformat(value)
        result[wire_key] = value
    for wire_key, column in FIELD_MAPS[kind].items():
        value = getattr(record, column, None)
        if column in DATETIME_FIELDS:
            value = isoformat(value)
        result[wire_key] = value
    return result
