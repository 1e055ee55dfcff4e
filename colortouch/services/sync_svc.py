"""Sync service - server side of the push/pull protocol."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import ConflictError, InvalidCheckpointError, MissingFieldsError, RecordNotFoundError
from ..models import SyncStatus
from ..schemas.sync import Change, ModelStats, PullResponse, PushRequest
from ..sync.conflict import Resolution, compare
from ..sync.entities import EntityKind, Operation, resolve_entity, resolve_operation
from ..sync.field_mapper import incoming_updated_at, record_to_wire, wire_to_columns
from ..timeutil import as_utc, isoformat, parse_timestamp, utcnow
from . import entity_svc

logger = logging.getLogger(__name__)


def _validate(request: PushRequest) -> tuple[Operation, EntityKind]:
    required = (request.operation, request.model, request.record_id, request.user_id)
    if not all(required):
        raise MissingFieldsError()
    kind = resolve_entity(request.model)
    operation = resolve_operation(request.operation)
    return operation, kind


async def apply_push(db: AsyncSession, request: PushRequest) -> dict[str, Any] | None:
    """Apply one pushed change and return the resulting record in wire format.

    Raises ConflictError when an UPDATE carries an ``updatedAt`` older than the
    stored copy; the stored row is left untouched in that case.
    """
    operation, kind = _validate(request)
    data = request.data or {}
    now = utcnow()

    if operation is Operation.DELETE:
        existing = await entity_svc.get_record(db, kind, request.record_id)
        if existing is None:
            return None
        if existing.user_id != request.user_id:
            raise RecordNotFoundError(f"{kind.value} {request.record_id} not found")
        snapshot = record_to_wire(kind, existing)
        await entity_svc.delete_record(db, existing)
        logger.info("Deleted %s %s for user %s", kind.value, request.record_id, request.user_id)
        return snapshot

    fields = wire_to_columns(kind, data)
    fields["sync_status"] = SyncStatus.SYNCED
    fields["last_synced_at"] = now
    fields["updated_at"] = incoming_updated_at(data) or now

    if operation is Operation.CREATE:
        record = await entity_svc.create_record(
            db, kind, request.user_id, record_id=data.get("id") or None, **fields
        )
        logger.info("Created %s %s (client id %s)", kind.value, record.id, request.record_id)
        return record_to_wire(kind, record)

    existing = await entity_svc.get_record(db, kind, request.record_id)
    if existing is None or existing.user_id != request.user_id:
        raise RecordNotFoundError(f"{kind.value} {request.record_id} not found")

    if "updatedAt" in data:
        decision = compare(existing.updated_at, incoming_updated_at(data))
        if decision is Resolution.REJECT:
            logger.info(
                "Conflict on %s %s: server %s newer than incoming %s",
                kind.value, request.record_id, existing.updated_at, data.get("updatedAt"),
            )
            raise ConflictError(record_to_wire(kind, existing))

    record = await entity_svc.update_record(db, existing, **fields)
    return record_to_wire(kind, record)


def resolve_since(last_sync_time: str | None, now: datetime | None = None) -> datetime:
    """Checkpoint to pull from: ``lastSyncTime`` or the default lookback window."""
    if last_sync_time:
        try:
            return parse_timestamp(last_sync_time)
        except ValueError:
            raise InvalidCheckpointError(f"Invalid lastSyncTime: {last_sync_time!r}") from None
    now = now or utcnow()
    return now - timedelta(hours=settings.sync_pull_lookback_hours)


async def collect_changes(
    db: AsyncSession, user_id: str, last_sync_time: str | None = None
) -> PullResponse:
    """Everything the user changed since the checkpoint, always reported as UPDATE."""
    now = utcnow()
    since = resolve_since(last_sync_time, now)

    changes: list[Change] = []
    for kind in EntityKind:
        for record in await entity_svc.list_changed_since(db, kind, user_id, since):
            changes.append(Change(
                operation=Operation.UPDATE.value,
                model=kind.value,
                record_id=record.id,
                data=record_to_wire(kind, record),
            ))

    return PullResponse(changes=changes, sync_time=isoformat(now))


async def model_stats(db: AsyncSession, user_id: str) -> dict[str, ModelStats]:
    stats: dict[str, ModelStats] = {}
    for kind in EntityKind:
        counts = await entity_svc.count_by_status(db, kind, user_id)
        last = counts.pop("last_synced_at")
        stats[kind.value] = ModelStats(
            last_synced_at=as_utc(last) if last else None, **counts
        )
    return stats
