"""Reminder routes - per-user CRUD with pending/completed/overdue filters."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import AuthUser, get_current_user
from ..database import get_db
from ..errors import InvalidDataError
from ..services import entity_svc
from ..sync.entities import EntityKind
from ..sync.field_mapper import record_to_wire, wire_to_columns
from ..timeutil import utcnow
from .common import json_body, owned_record_or_404, require_fields

router = APIRouter(prefix="/api/reminders", tags=["reminders"])

KIND = EntityKind.REMINDER


def _status_filters(status: str | None) -> list:
    model = KIND.model
    if not status or status == "all":
        return []
    if status == "pending":
        return [model.is_completed.is_(False)]
    if status == "completed":
        return [model.is_completed.is_(True)]
    if status == "overdue":
        return [model.is_completed.is_(False), model.reminder_date < utcnow()]
    raise InvalidDataError(f"Unknown reminder status filter: {status!r}")


@router.get("")
async def reminder_list(
    status: str | None = None,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reminders = await entity_svc.list_records(db, KIND, user.user_id, *_status_filters(status))
    return {"success": True, "data": [record_to_wire(KIND, r) for r in reminders]}


@router.post("", status_code=201)
async def reminder_create(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = await json_body(request)
    require_fields(body, "title", "reminderDate")
    fields = wire_to_columns(KIND, body)
    fields["is_completed"] = False
    reminder = await entity_svc.create_record(db, KIND, user.user_id, **fields)
    return {"success": True, "data": record_to_wire(KIND, reminder)}


@router.get("/{reminder_id}")
async def reminder_detail(
    reminder_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reminder = await owned_record_or_404(db, KIND, user.user_id, reminder_id)
    return {"success": True, "data": record_to_wire(KIND, reminder)}


@router.put("/{reminder_id}")
async def reminder_update(
    reminder_id: str,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reminder = await owned_record_or_404(db, KIND, user.user_id, reminder_id)
    body = await json_body(request)
    reminder = await entity_svc.update_record(db, reminder, **wire_to_columns(KIND, body))
    return {"success": True, "data": record_to_wire(KIND, reminder)}


@router.delete("/{reminder_id}")
async def reminder_delete(
    reminder_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reminder = await owned_record_or_404(db, KIND, user.user_id, reminder_id)
    snapshot = record_to_wire(KIND, reminder)
    await entity_svc.delete_record(db, reminder)
    return {"success": True, "data": snapshot}
