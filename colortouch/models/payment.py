"""Payment model. Amounts are stored in minor units (paise)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, OwnerMixin, StringIDMixin, SyncMixin, TimestampMixin


class Payment(StringIDMixin, TimestampMixin, OwnerMixin, SyncMixin, Base):
    __tablename__ = "payment"

    amount: Mapped[int] = mapped_column(Integer, default=0)
    currency: Mapped[str] = mapped_column(String(10), default="INR")
    status: Mapped[str] = mapped_column(String(30), default="PENDING")
    payment_method: Mapped[str | None] = mapped_column(String(50), default=None)
    order_id: Mapped[str | None] = mapped_column(String(100), default=None)
    razorpay_payment_id: Mapped[str | None] = mapped_column(String(100), default=None)
    receipt: Mapped[str | None] = mapped_column(String(100), default=None)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    def __repr__(self) -> str:
        return f"<Payment {self.amount} {self.currency}>"
