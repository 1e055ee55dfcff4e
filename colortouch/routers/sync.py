"""Sync API routes - push, pull, stats and manual trigger."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import AuthUser, get_current_user
from ..database import get_db
from ..errors import InvalidCheckpointError, InvalidDataError, ServerError, SyncError
from ..schemas.sync import PullRequest, PushRequest
from ..services import sync_svc
from ..sync.coordinator import SyncCoordinator
from .common import json_body

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


class ConnectivityUpdate(BaseModel):
    online: bool


def get_sync_coordinator(request: Request) -> SyncCoordinator | None:
    return getattr(request.app.state, "sync_coordinator", None)


def _require_coordinator(coordinator: SyncCoordinator | None) -> SyncCoordinator:
    if coordinator is None:
        raise ServerError("Sync coordinator is not configured", status_code=503)
    return coordinator


@router.post("/push")
async def push_change(request: Request, db: AsyncSession = Depends(get_db)):
    body = await json_body(request)
    try:
        payload = PushRequest.model_validate(body)
    except ValidationError as e:
        raise InvalidDataError(f"Malformed push request: {e.error_count()} invalid field(s)") from None

    try:
        data = await sync_svc.apply_push(db, payload)
    except SyncError:
        await db.rollback()
        raise
    except Exception as e:
        logger.exception("Sync push error")
        await db.rollback()
        return JSONResponse(
            {"error": str(e) or "Internal server error", "code": "server_error"},
            status_code=500,
        )
    return {"success": True, "data": data}


@router.post("/pull")
async def pull_changes(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    body = await json_body(request)
    try:
        payload = PullRequest.model_validate(body)
    except ValidationError:
        raise InvalidCheckpointError() from None

    try:
        response = await sync_svc.collect_changes(db, user.user_id, payload.last_sync_time)
    except SyncError:
        raise
    except Exception as e:
        logger.exception("Sync pull error")
        return JSONResponse(
            {"error": str(e) or "Internal server error", "code": "server_error"},
            status_code=500,
        )
    return response.model_dump(mode="json", by_alias=True)


@router.get("/stats")
async def sync_stats(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    coordinator: SyncCoordinator | None = Depends(get_sync_coordinator),
):
    models = await sync_svc.model_stats(db, user.user_id)
    result = {
        "success": True,
        "userId": user.user_id,
        "models": {name: stats.model_dump(mode="json") for name, stats in models.items()},
        "sync": None,
    }
    if coordinator is not None:
        result["sync"] = (await coordinator.status()).model_dump(mode="json")
    return result


@router.post("/stats")
async def trigger_sync(
    user: AuthUser = Depends(get_current_user),
    coordinator: SyncCoordinator | None = Depends(get_sync_coordinator),
):
    coordinator = _require_coordinator(coordinator)
    logger.info("Manual sync requested by %s", user.user_id)
    result = await coordinator.sync()
    return {
        "success": result.success,
        "synced": result.synced,
        "failed": result.failed,
        "conflicts": result.conflicts,
        "message": result.message or result.summary(),
    }


@router.post("/connectivity")
async def update_connectivity(
    update: ConnectivityUpdate,
    user: AuthUser = Depends(get_current_user),
    coordinator: SyncCoordinator | None = Depends(get_sync_coordinator),
):
    coordinator = _require_coordinator(coordinator)
    result = await coordinator.set_online(update.online)
    return {
        "success": True,
        "online": coordinator.online,
        "sync": result.model_dump(mode="json") if result else None,
    }
