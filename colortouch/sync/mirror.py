"""Local mirror - merges pulled server changes into the client store.

Pulls always report changes as UPDATE; whether a change creates or updates
the local copy is decided here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy import delete, func, select

from ..timeutil import as_utc, parse_timestamp, utcnow
from .store import LocalRecord, LocalStore, PendingChange

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0


def _timestamp(data: dict[str, Any]):
    try:
        return parse_timestamp(data.get("updatedAt"))
    except ValueError:
        return None


class LocalMirror:
    def __init__(self, store: LocalStore):
        self.store = store

    async def get(self, model: str, record_id: str) -> LocalRecord | None:
        stmt = select(LocalRecord).where(LocalRecord.model == model, LocalRecord.record_id == record_id)
        async with self.store.session() as db:
            return (await db.execute(stmt)).scalar_one_or_none()

    async def count(self) -> int:
        async with self.store.session() as db:
            return (await db.execute(select(func.count()).select_from(LocalRecord))).scalar() or 0

    async def upsert(self, model: str, record_id: str, data: dict[str, Any]) -> bool:
        """Write the server copy unconditionally. Returns True if it was new."""
        async with self.store.session() as db:
            stmt = select(LocalRecord).where(
                LocalRecord.model == model, LocalRecord.record_id == record_id
            )
            row = (await db.execute(stmt)).scalar_one_or_none()
            created = row is None
            if created:
                row = LocalRecord(model=model, record_id=record_id)
                db.add(row)
            row.data = dict(data)
            row.sync_status = "SYNCED"
            row.updated_at = _timestamp(data)
            row.last_synced_at = utcnow()
            await db.commit()
            return created

    async def remove(self, model: str, record_id: str) -> bool:
        stmt = delete(LocalRecord).where(LocalRecord.model == model, LocalRecord.record_id == record_id)
        async with self.store.session() as db:
            result = await db.execute(stmt)
            await db.commit()
        return bool(result.rowcount)

    async def apply_changes(self, changes: Iterable[dict[str, Any]]) -> MergeResult:
        """Merge pulled changes.

        A change is skipped when the record still has a queued local change or
        when the local copy is newer than the pulled one.
        """
        result = MergeResult()
        async with self.store.session() as db:
            queued = {
                (model, record_id)
                for model, record_id in (
                    await db.execute(select(PendingChange.model, PendingChange.record_id))
                ).all()
            }

        for change in changes:
            model = change.get("model")
            record_id = change.get("recordId")
            data = change.get("data") or {}
            if not model or not record_id:
                result.skipped += 1
                continue
            if (model, record_id) in queued:
                logger.debug("Keeping queued local change for %s %s", model, record_id)
                result.skipped += 1
                continue

            existing = await self.get(model, record_id)
            incoming = _timestamp(data)
            if existing is not None and existing.updated_at and incoming:
                if as_utc(existing.updated_at) > incoming:
                    result.skipped += 1
                    continue

            if await self.upsert(model, record_id, data):
                result.created += 1
            else:
                result.updated += 1
        return result
