"""Lead model."""

from __future__ import annotations

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OwnerMixin, StringIDMixin, SyncMixin, TimestampMixin


class Lead(StringIDMixin, TimestampMixin, OwnerMixin, SyncMixin, Base):
    __tablename__ = "lead"

    name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str | None] = mapped_column(String(255), default=None, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), default=None)
    company: Mapped[str | None] = mapped_column(String(200), default=None)
    source: Mapped[str] = mapped_column(String(50), default="OTHER")
    status: Mapped[str] = mapped_column(String(50), default="NEW")
    tag: Mapped[str | None] = mapped_column(String(100), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    amount: Mapped[float | None] = mapped_column(Float, default=None)
    duration: Mapped[int] = mapped_column(Integer, default=10)

    def __repr__(self) -> str:
        return f"<Lead {self.name!r}>"
