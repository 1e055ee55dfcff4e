"""Test the HTTP sync transport against mocked responses."""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from colortouch.errors import ServerError, SyncError, TransportError, UnauthorizedError
from colortouch.sync.transport import HttpSyncTransport, PushStatus


def _change(**overrides):
    values = {
        "operation": "UPDATE",
        "model": "Lead",
        "record_id": "lead-1",
        "data": {"name": "Jane"},
        "user_id": "user-1",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _transport(handler, token="tok") -> HttpSyncTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://sync.test")
    return HttpSyncTransport("http://sync.test", token=token, client=client)


@pytest.mark.asyncio
async def test_push_sends_wire_payload():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {"id": "lead-1", "name": "Jane"}})

    transport = _transport(handler)
    result = await transport.push(_change())

    assert seen["path"] == "/api/sync/push"
    assert seen["auth"] == "Bearer tok"
    assert seen["body"] == {
        "operation": "UPDATE",
        "model": "Lead",
        "recordId": "lead-1",
        "data": {"name": "Jane"},
        "userId": "user-1",
    }
    assert result.status is PushStatus.SYNCED
    assert result.data["name"] == "Jane"


@pytest.mark.asyncio
async def test_push_conflict_carries_server_copy():
    def handler(request):
        return httpx.Response(409, json={
            "error": "Conflict detected", "code": "conflict", "conflict": True,
            "serverData": {"id": "lead-1", "name": "Server"},
        })

    result = await _transport(handler).push(_change())
    assert result.status is PushStatus.CONFLICT
    assert result.server_data == {"id": "lead-1", "name": "Server"}


@pytest.mark.asyncio
@pytest.mark.parametrize("status,code", [(400, "invalid_model"), (404, "not_found")])
async def test_push_rejection(status, code):
    def handler(request):
        return httpx.Response(status, json={"error": "nope", "code": code})

    result = await _transport(handler).push(_change())
    assert result.status is PushStatus.REJECTED
    assert result.error == "nope"


@pytest.mark.asyncio
async def test_push_server_error_raises():
    def handler(request):
        return httpx.Response(500, json={"error": "database exploded", "code": "server_error"})

    with pytest.raises(ServerError) as exc_info:
        await _transport(handler).push(_change())
    assert exc_info.value.retryable is True


@pytest.mark.asyncio
async def test_push_unauthorized_raises():
    def handler(request):
        return httpx.Response(401, json={"error": "Unauthorized", "code": "unauthorized"})

    with pytest.raises(UnauthorizedError):
        await _transport(handler, token=None).push(_change())


@pytest.mark.asyncio
async def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as exc_info:
        await _transport(handler).push(_change())
    assert "ConnectError" in exc_info.value.message


@pytest.mark.asyncio
async def test_pull_sends_checkpoint():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={
            "success": True,
            "changes": [{"operation": "UPDATE", "model": "Lead", "recordId": "a", "data": {}}],
            "syncTime": "2026-03-01T12:00:00Z",
        })

    transport = _transport(handler)
    first = await transport.pull()
    second = await transport.pull("2026-03-01T11:00:00Z")

    assert seen == [{}, {"lastSyncTime": "2026-03-01T11:00:00Z"}]
    assert first.sync_time == "2026-03-01T12:00:00Z"
    assert first.changes[0]["recordId"] == "a"
    assert second.changes


@pytest.mark.asyncio
async def test_pull_errors():
    def unauthorized(request):
        return httpx.Response(401, json={"error": "Unauthorized", "code": "unauthorized"})

    def malformed(request):
        return httpx.Response(200, text="<html>proxy login</html>")

    with pytest.raises(UnauthorizedError):
        await _transport(unauthorized).pull()
    with pytest.raises(SyncError, match="Malformed"):
        await _transport(malformed).pull()


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    transport = HttpSyncTransport("http://sync.test")
    async with transport:
        pass
    assert transport._client.is_closed
