"""Test merging pulled changes into the local mirror."""

from __future__ import annotations

import pytest

from colortouch.sync.mirror import LocalMirror
from colortouch.sync.queue import ChangeQueue


def _change(record_id: str, updated_at: str, model: str = "Lead", **data):
    return {
        "operation": "UPDATE",
        "model": model,
        "recordId": record_id,
        "data": {"id": record_id, "updatedAt": updated_at, **data},
    }


@pytest.mark.asyncio
async def test_apply_creates_then_updates(mirror: LocalMirror):
    first = await mirror.apply_changes([_change("lead-1", "2026-03-01T12:00:00Z", name="A")])
    assert (first.created, first.updated, first.skipped) == (1, 0, 0)

    second = await mirror.apply_changes([_change("lead-1", "2026-03-01T13:00:00Z", name="B")])
    assert (second.created, second.updated) == (0, 1)

    row = await mirror.get("Lead", "lead-1")
    assert row.data["name"] == "B"
    assert row.sync_status == "SYNCED"
    assert await mirror.count() == 1


@pytest.mark.asyncio
async def test_stale_change_is_skipped(mirror: LocalMirror):
    await mirror.upsert("Lead", "lead-1", {"id": "lead-1", "name": "New", "updatedAt": "2026-03-02T00:00:00Z"})
    result = await mirror.apply_changes([_change("lead-1", "2026-03-01T00:00:00Z", name="Old")])
    assert result.skipped == 1
    assert (await mirror.get("Lead", "lead-1")).data["name"] == "New"


@pytest.mark.asyncio
async def test_queued_local_change_wins(mirror: LocalMirror, queue: ChangeQueue):
    await queue.enqueue("UPDATE", "Lead", "lead-1", {"name": "Local edit"}, "user-1")
    result = await mirror.apply_changes([
        _change("lead-1", "2026-03-01T00:00:00Z", name="Server"),
        _change("pay-1", "2026-03-01T00:00:00Z", model="Payment", amount=5),
    ])
    assert result.skipped == 1
    assert result.created == 1
    assert await mirror.get("Lead", "lead-1") is None
    assert (await mirror.get("Payment", "pay-1")).data["amount"] == 5


@pytest.mark.asyncio
async def test_malformed_change_is_skipped(mirror: LocalMirror):
    result = await mirror.apply_changes([{"operation": "UPDATE", "data": {}}])
    assert result.skipped == 1
    assert await mirror.count() == 0


@pytest.mark.asyncio
async def test_remove(mirror: LocalMirror):
    await mirror.upsert("Reminder", "rem-1", {"id": "rem-1"})
    assert await mirror.remove("Reminder", "rem-1") is True
    assert await mirror.remove("Reminder", "rem-1") is False
