"""Reminder model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OwnerMixin, StringIDMixin, SyncMixin, TimestampMixin


class Reminder(StringIDMixin, TimestampMixin, OwnerMixin, SyncMixin, Base):
    __tablename__ = "reminder"

    title: Mapped[str] = mapped_column(String(200), default="")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    reminder_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    reminder_type: Mapped[str] = mapped_column(String(30), default="GENERAL")
    priority: Mapped[str] = mapped_column(String(20), default="MEDIUM")
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    lead_id: Mapped[str | None] = mapped_column(String(64), default=None, index=True)

    def __repr__(self) -> str:
        return f"<Reminder {self.title!r}>"
