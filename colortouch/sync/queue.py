"""Local change queue - durable mutations awaiting server confirmation."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..schemas.sync import PendingCounts
from ..timeutil import utcnow
from .entities import EntityKind, resolve_entity, resolve_operation
from .store import LocalStore, PendingChange, SyncStateEntry

logger = logging.getLogger(__name__)

LAST_SYNC_TIME_KEY = "lastSyncTime"


class EntryStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFLICT = "CONFLICT"


class ConflictStrategy(str, enum.Enum):
    KEEP_SERVER = "keep_server"
    KEEP_LOCAL = "keep_local"


@dataclass
class EnqueueResult:
    ok: bool
    entry_id: int | None = None
    error: str | None = None


class ChangeQueue:
    """Append-only queue of Pending Changes stored in the local database.

    Only the sync coordinator removes entries, and only after the server has
    acknowledged them.
    """

    def __init__(self, store: LocalStore):
        self.store = store

    async def enqueue(
        self,
        operation: str,
        model: str,
        record_id: str,
        data: dict[str, Any] | None,
        user_id: str,
    ) -> EnqueueResult:
        """Append a change. Never touches the network.

        A storage failure is logged together with the change payload and
        reported through the result instead of being raised.
        """
        op = resolve_operation(operation)
        kind = resolve_entity(model)
        payload = dict(data or {})
        try:
            async with self.store.session() as db:
                entry = PendingChange(
                    operation=op.value,
                    model=kind.value,
                    record_id=str(record_id),
                    user_id=user_id,
                    data=payload,
                    enqueued_at=utcnow(),
                    status=EntryStatus.PENDING.value,
                )
                db.add(entry)
                await db.commit()
                return EnqueueResult(ok=True, entry_id=entry.id)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to persist pending change, logging payload instead: %s",
                json.dumps({
                    "operation": op.value,
                    "model": kind.value,
                    "recordId": str(record_id),
                    "userId": user_id,
                    "data": payload,
                }, default=str),
                exc_info=True,
            )
            return EnqueueResult(ok=False, error=str(e))

    async def dequeue(self, entry_id: int) -> bool:
        """Remove an entry. Returns False if it was already gone."""
        async with self.store.session() as db:
            result = await db.execute(delete(PendingChange).where(PendingChange.id == entry_id))
            await db.commit()
            return bool(result.rowcount)

    async def get_entry(self, entry_id: int) -> PendingChange | None:
        async with self.store.session() as db:
            return await db.get(PendingChange, entry_id)

    async def list_entries(self, *, include_conflicts: bool = False) -> list[PendingChange]:
        """Entries in enqueue order."""
        stmt = select(PendingChange).order_by(PendingChange.enqueued_at, PendingChange.id)
        if not include_conflicts:
            stmt = stmt.where(PendingChange.status == EntryStatus.PENDING.value)
        async with self.store.session() as db:
            return list((await db.execute(stmt)).scalars().all())

    async def list_conflicts(self) -> list[PendingChange]:
        stmt = (
            select(PendingChange)
            .where(PendingChange.status == EntryStatus.CONFLICT.value)
            .order_by(PendingChange.enqueued_at, PendingChange.id)
        )
        async with self.store.session() as db:
            return list((await db.execute(stmt)).scalars().all())

    async def get_queue_count(self) -> int:
        async with self.store.session() as db:
            return (await db.execute(select(func.count()).select_from(PendingChange))).scalar() or 0

    async def get_pending_count(self) -> PendingCounts:
        """Outstanding entries grouped by model."""
        stmt = select(PendingChange.model, func.count()).group_by(PendingChange.model)
        async with self.store.session() as db:
            rows = (await db.execute(stmt)).all()
        counts = {kind.count_key: 0 for kind in EntityKind}
        for model, count in rows:
            try:
                counts[EntityKind(model).count_key] = count
            except ValueError:
                logger.warning("Ignoring queue entries for unknown model %r", model)
        return PendingCounts(**counts)

    async def record_failure(self, entry_id: int, error: str) -> None:
        stmt = (
            update(PendingChange)
            .where(PendingChange.id == entry_id)
            .values(attempts=PendingChange.attempts + 1, last_error=error)
        )
        async with self.store.session() as db:
            await db.execute(stmt)
            await db.commit()

    async def mark_conflict(self, entry_id: int, server_data: dict[str, Any] | None) -> None:
        stmt = (
            update(PendingChange)
            .where(PendingChange.id == entry_id)
            .values(
                status=EntryStatus.CONFLICT.value,
                server_data=server_data or {},
                attempts=PendingChange.attempts + 1,
                last_error="Conflict detected",
            )
        )
        async with self.store.session() as db:
            await db.execute(stmt)
            await db.commit()

    async def remap_record_id(self, model: str, old_id: str, new_id: str) -> int:
        """Point queued entries at the server-assigned id of a created record."""
        if not new_id or old_id == new_id:
            return 0
        stmt = (
            update(PendingChange)
            .where(PendingChange.model == model, PendingChange.record_id == old_id)
            .values(record_id=new_id)
        )
        async with self.store.session() as db:
            result = await db.execute(stmt)
            await db.commit()
        if result.rowcount:
            logger.info("Remapped %d queued %s change(s) %s -> %s", result.rowcount, model, old_id, new_id)
        return result.rowcount or 0

    async def resolve_conflict(self, entry_id: int, strategy: ConflictStrategy | str, mirror=None) -> bool:
        """Settle a conflict-flagged entry.

        ``keep_server`` drops the local change (merging the server copy into
        ``mirror`` when given). ``keep_local`` rebases the change onto the
        server timestamp and returns it to the queue.
        """
        strategy = ConflictStrategy(strategy)
        async with self.store.session() as db:
            entry = await db.get(PendingChange, entry_id)
            if entry is None or entry.status != EntryStatus.CONFLICT.value:
                return False

            server_data = dict(entry.server_data or {})
            if strategy is ConflictStrategy.KEEP_SERVER:
                await db.delete(entry)
                await db.commit()
                if mirror is not None and server_data:
                    await mirror.upsert(entry.model, entry.record_id, server_data)
                return True

            data = dict(entry.data or {})
            if server_data.get("updatedAt"):
                data["updatedAt"] = server_data["updatedAt"]
            entry.data = data
            entry.status = EntryStatus.PENDING.value
            entry.server_data = None
            entry.last_error = None
            await db.commit()
            return True

    async def get_last_sync_time(self) -> str | None:
        async with self.store.session() as db:
            row = await db.get(SyncStateEntry, LAST_SYNC_TIME_KEY)
            return row.value if row else None

    async def set_last_sync_time(self, value: str) -> None:
        async with self.store.session() as db:
            row = await db.get(SyncStateEntry, LAST_SYNC_TIME_KEY)
            if row is None:
                db.add(SyncStateEntry(key=LAST_SYNC_TIME_KEY, value=value))
            else:
                row.value = value
            await db.commit()
