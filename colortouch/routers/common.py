"""Helpers shared by the JSON API routers."""

from __future__ import annotations

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import MissingFieldsError, RecordNotFoundError
from ..services import entity_svc
from ..sync.entities import EntityKind


async def json_body(request: Request) -> dict:
    """Request JSON as a dict; empty or non-JSON bodies become ``{}``."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def require_fields(body: dict, *names: str) -> None:
    missing = [name for name in names if body.get(name) in (None, "")]
    if missing:
        raise MissingFieldsError(f"Missing required fields: {', '.join(missing)}")


async def owned_record_or_404(db: AsyncSession, kind: EntityKind, user_id: str, record_id: str):
    record = await entity_svc.get_owned_record(db, kind, user_id, record_id)
    if record is None:
        raise RecordNotFoundError(f"{kind.value} not found")
    return record
