"""Lead routes - per-user CRUD on the server copy."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import AuthUser, get_current_user
from ..database import get_db
from ..services import entity_svc
from ..sync.entities import EntityKind
from ..sync.field_mapper import record_to_wire, wire_to_columns
from .common import json_body, owned_record_or_404, require_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["leads"])

KIND = EntityKind.LEAD


@router.get("")
async def lead_list(
    status: str | None = None,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = [KIND.model.status == status.upper()] if status else []
    leads = await entity_svc.list_records(db, KIND, user.user_id, *filters)
    return {"success": True, "data": [record_to_wire(KIND, lead) for lead in leads]}


@router.post("", status_code=201)
async def lead_create(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = await json_body(request)
    require_fields(body, "name")
    lead = await entity_svc.create_record(db, KIND, user.user_id, **wire_to_columns(KIND, body))
    logger.info("Created lead %s for %s", lead.id, user.user_id)
    return {"success": True, "data": record_to_wire(KIND, lead)}


@router.get("/{lead_id}")
async def lead_detail(
    lead_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await owned_record_or_404(db, KIND, user.user_id, lead_id)
    return {"success": True, "data": record_to_wire(KIND, lead)}


@router.put("/{lead_id}")
async def lead_update(
    lead_id: str,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await owned_record_or_404(db, KIND, user.user_id, lead_id)
    body = await json_body(request)
    lead = await entity_svc.update_record(db, lead, **wire_to_columns(KIND, body))
    return {"success": True, "data": record_to_wire(KIND, lead)}


@router.delete("/{lead_id}")
async def lead_delete(
    lead_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    lead = await owned_record_or_404(db, KIND, user.user_id, lead_id)
    snapshot = record_to_wire(KIND, lead)
    await entity_svc.delete_record(db, lead)
    logger.info("Deleted lead %s for %s", lead_id, user.user_id)
    return {"success": True, "data": snapshot}
