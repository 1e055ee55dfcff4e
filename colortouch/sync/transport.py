"""HTTP transport for the push/pull sync protocol."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import (
    ConflictError,
    ServerError,
    SyncError,
    TransportError,
    UnauthorizedError,
    error_from_response,
)


class PushStatus(str, enum.Enum):
    SYNCED = "SYNCED"
    CONFLICT = "CONFLICT"
    REJECTED = "REJECTED"


@dataclass
class PushResult:
    status: PushStatus
    data: dict[str, Any] | None = None
    server_data: dict[str, Any] | None = None
    error: str | None = None


@dataclass
class PullResult:
    sync_time: str
    changes: list[dict[str, Any]] = field(default_factory=list)


class HttpSyncTransport:
    """Talks to ``/api/sync/push`` and ``/api/sync/pull`` on a ColorTouch server.

    Network failures raise TransportError, 5xx raise ServerError and 401
    raises UnauthorizedError. Conflicts and definitive 4xx rejections come
    back as a PushResult so the coordinator can keep going.
    """

    PUSH_PATH = "/api/sync/push"
    PULL_PATH = "/api/sync/pull"

    def __init__(
        self,
        base_url: str = "",
        *,
        token: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.token = token
        self._owns_client = client is None
        if client is None:
            kwargs: dict[str, Any] = {"base_url": base_url}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = httpx.AsyncClient(**kwargs)
        self._client = client

    async def __aenter__(self) -> "HttpSyncTransport":
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            return await self._client.post(path, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise TransportError(f"{path}: {e.__class__.__name__}: {e}") from e

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return {}

    async def push(self, change) -> PushResult:
        """Send one queued change (anything with operation/model/record_id/data/user_id)."""
        resp = await self._post(self.PUSH_PATH, {
            "operation": change.operation,
            "model": change.model,
            "recordId": change.record_id,
            "data": change.data or {},
            "userId": change.user_id,
        })
        body = self._json(resp)
        if resp.status_code == 200:
            data = body.get("data") if isinstance(body, dict) else None
            return PushResult(status=PushStatus.SYNCED, data=data)

        error = error_from_response(resp.status_code, body)
        if isinstance(error, ConflictError):
            return PushResult(
                status=PushStatus.CONFLICT, server_data=error.server_data, error=error.message
            )
        if isinstance(error, (UnauthorizedError, ServerError)):
            raise error
        return PushResult(status=PushStatus.REJECTED, error=error.message)

    async def pull(self, last_sync_time: str | None = None) -> PullResult:
        payload = {"lastSyncTime": last_sync_time} if last_sync_time else {}
        resp = await self._post(self.PULL_PATH, payload)
        body = self._json(resp)
        if resp.status_code != 200:
            raise error_from_response(resp.status_code, body)
        if not isinstance(body, dict) or not isinstance(body.get("syncTime"), str):
            raise SyncError("Malformed pull response")
        changes = body.get("changes") or []
        return PullResult(sync_time=body["syncTime"], changes=list(changes))
