"""Client-local durable store: pending changes, sync checkpoint, record mirror.

Kept in its own SQLite file (``settings.local_store_url``) with its own
metadata, separate from the server database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..timeutil import utcnow


class LocalBase(DeclarativeBase):
    pass


class PendingChange(LocalBase):
    __tablename__ = "pending_change"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    operation: Mapped[str] = mapped_column(String(10))
    model: Mapped[str] = mapped_column(String(20), index=True)
    record_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str] = mapped_column(String(64))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    enqueued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    status: Mapped[str] = mapped_column(String(10), default="PENDING")  # PENDING, CONFLICT
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, default=None)
    server_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, default=None)

    def __repr__(self) -> str:
        return f"<PendingChange #{self.id} {self.operation} {self.model}:{self.record_id}>"


class SyncStateEntry(LocalBase):
    """Key-value rows; holds the ``lastSyncTime`` checkpoint."""

    __tablename__ = "sync_state"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, default=None)


class LocalRecord(LocalBase):
    """Last known copy of a server record on this client."""

    __tablename__ = "local_record"
    __table_args__ = (UniqueConstraint("model", "record_id", name="uq_local_record_model_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model: Mapped[str] = mapped_column(String(20), index=True)
    record_id: Mapped[str] = mapped_column(String(64))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    sync_status: Mapped[str] = mapped_column(String(10), default="SYNCED")
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)


class LocalStore:
    """Owns the engine and session factory for the client-local database."""

    def __init__(self, url: str, *, engine: AsyncEngine | None = None, echo: bool = False):
        self.url = url
        self.engine = engine or create_async_engine(url, echo=echo)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(LocalBase.metadata.create_all)

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def dispose(self) -> None:
        await self.engine.dispose()
