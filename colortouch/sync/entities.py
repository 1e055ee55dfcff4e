"""Closed registry of syncable entity kinds and queue operations."""

from __future__ import annotations

import enum

from ..errors import InvalidModelError, InvalidOperationError
from ..models import Lead, Payment, Reminder


class EntityKind(str, enum.Enum):
    LEAD = "Lead"
    PAYMENT = "Payment"
    REMINDER = "Reminder"

    @property
    def model(self):
        return ENTITY_MODELS[self]

    @property
    def count_key(self) -> str:
        """Key used in pending-count summaries (``leads``, ``payments``, ...)."""
        return f"{self.value.lower()}s"


class Operation(str, enum.Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


ENTITY_MODELS = {
    EntityKind.LEAD: Lead,
    EntityKind.PAYMENT: Payment,
    EntityKind.REMINDER: Reminder,
}


def resolve_entity(name) -> EntityKind:
    """Map a wire model name onto an EntityKind. Raises InvalidModelError."""
    if isinstance(name, EntityKind):
        return name
    try:
        return EntityKind(name)
    except ValueError:
        raise InvalidModelError(f"Invalid model: {name!r}") from None


def resolve_operation(name) -> Operation:
    """Map a wire operation name onto an Operation. Raises InvalidOperationError."""
    if isinstance(name, Operation):
        return name
    try:
        return Operation(str(name).upper())
    except ValueError:
        raise InvalidOperationError(f"Invalid operation: {name!r}") from None
