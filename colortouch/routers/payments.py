"""Payment routes. Amounts travel in minor units (paise)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import AuthUser, get_current_user
from ..database import get_db
from ..errors import InvalidDataError
from ..services import entity_svc
from ..sync.entities import EntityKind
from ..sync.field_mapper import record_to_wire, wire_to_columns
from .common import json_body, owned_record_or_404, require_fields

router = APIRouter(prefix="/api/payments", tags=["payments"])

KIND = EntityKind.PAYMENT


def _payment_fields(body: dict) -> dict:
    fields = wire_to_columns(KIND, body)
    if "amount" in fields:
        amount = fields["amount"]
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidDataError("amount must be a non-negative integer in paise")
    return fields


@router.get("")
async def payment_list(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payments = await entity_svc.list_records(db, KIND, user.user_id)
    return {"success": True, "data": [record_to_wire(KIND, p) for p in payments]}


@router.post("", status_code=201)
async def payment_create(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = await json_body(request)
    require_fields(body, "amount")
    payment = await entity_svc.create_record(db, KIND, user.user_id, **_payment_fields(body))
    return {"success": True, "data": record_to_wire(KIND, payment)}


@router.get("/{payment_id}")
async def payment_detail(
    payment_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await owned_record_or_404(db, KIND, user.user_id, payment_id)
    return {"success": True, "data": record_to_wire(KIND, payment)}


@router.put("/{payment_id}")
async def payment_update(
    payment_id: str,
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await owned_record_or_404(db, KIND, user.user_id, payment_id)
    body = await json_body(request)
    payment = await entity_svc.update_record(db, payment, **_payment_fields(body))
    return {"success": True, "data": record_to_wire(KIND, payment)}


@router.delete("/{payment_id}")
async def payment_delete(
    payment_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    payment = await owned_record_or_404(db, KIND, user.user_id, payment_id)
    snapshot = record_to_wire(KIND, payment)
    await entity_svc.delete_record(db, payment)
    return {"success": True, "data": snapshot}
