"""ColorTouch models - re-exports all models and Base.metadata."""

from .base import Base, SyncStatus, StringIDMixin, TimestampMixin, OwnerMixin, SyncMixin
from .lead import Lead
from .payment import Payment
from .reminder import Reminder

__all__ = [
    "Base",
    "SyncStatus",
    "StringIDMixin",
    "TimestampMixin",
    "OwnerMixin",
    "SyncMixin",
    "Lead",
    "Payment",
    "Reminder",
]
