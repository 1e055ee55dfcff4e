"""Entity service - CRUD for syncable records, keyed by EntityKind."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import SyncStatus
from ..sync.entities import EntityKind


async def get_record(db: AsyncSession, kind: EntityKind, record_id: str):
    """Get a single record by id, or None."""
    result = await db.execute(select(kind.model).where(kind.model.id == record_id))
    return result.scalar_one_or_none()


async def get_owned_record(db: AsyncSession, kind: EntityKind, user_id: str, record_id: str):
    """Get a record only if it belongs to ``user_id``."""
    model = kind.model
    result = await db.execute(select(model).where(model.id == record_id, model.user_id == user_id))
    return result.scalar_one_or_none()


async def list_records(db: AsyncSession, kind: EntityKind, user_id: str, *filters) -> list:
    """Records owned by ``user_id``, newest first."""
    model = kind.model
    stmt = (
        select(model)
        .where(model.user_id == user_id, *filters)
        .order_by(model.created_at.desc(), model.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_record(
    db: AsyncSession,
    kind: EntityKind,
    user_id: str,
    *,
    record_id: str | None = None,
    commit: bool = True,
    **fields: Any,
):
    """Create a new record. The id is server-assigned unless ``record_id`` is given."""
    record = kind.model(user_id=user_id, **fields)
    if record_id:
        record.id = record_id
    db.add(record)
    if commit:
        await db.commit()
        await db.refresh(record)
    return record


async def update_record(db: AsyncSession, record, *, commit: bool = True, **fields: Any):
    """Apply ``fields`` to an existing record."""
    for key, value in fields.items():
        setattr(record, key, value)
    if commit:
        await db.commit()
        await db.refresh(record)
    return record


async def delete_record(db: AsyncSession, record, *, commit: bool = True) -> None:
    await db.delete(record)
    if commit:
        await db.commit()


async def list_changed_since(
    db: AsyncSession, kind: EntityKind, user_id: str, since: datetime
) -> list:
    """Records owned by ``user_id`` with ``updated_at >= since``, oldest first."""
    model = kind.model
    stmt = (
        select(model)
        .where(model.user_id == user_id, model.updated_at >= since)
        .order_by(model.updated_at, model.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession, kind: EntityKind, user_id: str) -> dict[str, Any]:
    """Per-status counts and the latest ``last_synced_at`` for one kind."""
    model = kind.model
    stmt = (
        select(model.sync_status, func.count())
        .where(model.user_id == user_id)
        .group_by(model.sync_status)
    )
    rows = (await db.execute(stmt)).all()
    counts = {status.value.lower(): 0 for status in SyncStatus}
    for status, count in rows:
        key = getattr(status, "value", status)
        counts[str(key).lower()] = count

    last_stmt = select(func.max(model.last_synced_at)).where(model.user_id == user_id)
    last_synced_at = (await db.execute(last_stmt)).scalar()

    return {
        "total": sum(counts.values()),
        **counts,
        "last_synced_at": last_synced_at,
    }
