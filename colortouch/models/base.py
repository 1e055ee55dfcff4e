"""Base model classes and mixins for ColorTouch models."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..timeutil import utcnow


class Base(DeclarativeBase):
    pass


class SyncStatus(str, enum.Enum):
    PENDING = "PENDING"
    SYNCED = "SYNCED"
    CONFLICT = "CONFLICT"


def new_id() -> str:
    return uuid.uuid4().hex


class StringIDMixin:
    """Adds a server-assigned string primary key."""

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)


class TimestampMixin:
    """Adds created_at / updated_at columns (UTC, set in Python)."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True
    )


class OwnerMixin:
    """Adds the owning user id used to scope pulls."""

    user_id: Mapped[str] = mapped_column(String(64), index=True)


class SyncMixin:
    """Adds offline sync tracking columns."""

    sync_status: Mapped[SyncStatus] = mapped_column(
        Enum(SyncStatus, native_enum=False, length=16), default=SyncStatus.PENDING
    )
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
