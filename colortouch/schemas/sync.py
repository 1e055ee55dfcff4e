"""Sync API schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PushRequest(BaseModel):
    """Body of ``POST /api/sync/push``. Presence is validated by the service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    operation: str | None = None
    model: str | None = None
    record_id: str | None = Field(default=None, alias="recordId")
    data: dict[str, Any] | None = None
    user_id: str | None = Field(default=None, alias="userId")


class PullRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_sync_time: str | None = Field(default=None, alias="lastSyncTime")


class Change(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    operation: str = "UPDATE"
    model: str
    record_id: str = Field(alias="recordId")
    data: dict[str, Any]


class PullResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    changes: list[Change] = []
    sync_time: str = Field(alias="syncTime")


class SyncRunResult(BaseModel):
    success: bool = True
    synced: int = 0
    failed: int = 0
    conflicts: int = 0
    message: str = ""
    already_syncing: bool = False
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def summary(self) -> str:
        return (
            f"Synced {self.synced} items, {self.failed} failed, "
            f"{self.conflicts} conflicts"
        )


class PendingCounts(BaseModel):
    leads: int = 0
    payments: int = 0
    reminders: int = 0

    @property
    def total(self) -> int:
        return self.leads + self.payments + self.reminders


class SyncStatusSnapshot(BaseModel):
    online: bool
    state: str
    queue_count: int = 0
    pending: PendingCounts = Field(default_factory=PendingCounts)
    last_result: SyncRunResult | None = None


class ModelStats(BaseModel):
    total: int = 0
    pending: int = 0
    synced: int = 0
    conflict: int = 0
    last_synced_at: datetime | None = None
