"""Sync error taxonomy shared by the server endpoints and the client transport."""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base class for sync failures. ``code`` is the stable wire identifier."""

    code = "sync_error"
    status_code = 500
    default_message = "Sync error"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        """True when the same request may succeed on a later run."""
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class MissingFieldsError(SyncError):
    code = "missing_fields"
    status_code = 400
    default_message = "Missing required fields"


class InvalidModelError(SyncError):
    code = "invalid_model"
    status_code = 400
    default_message = "Invalid model"


class InvalidOperationError(SyncError):
    code = "invalid_operation"
    status_code = 400
    default_message = "Invalid operation"


class InvalidCheckpointError(SyncError):
    code = "invalid_checkpoint"
    status_code = 400
    default_message = "Invalid lastSyncTime"


class InvalidDataError(SyncError):
    code = "invalid_data"
    status_code = 400
    default_message = "Invalid record data"


class RecordNotFoundError(SyncError):
    code = "not_found"
    status_code = 404
    default_message = "Record not found"


class ConflictError(SyncError):
    """The server copy is newer than the incoming write."""

    code = "conflict"
    status_code = 409
    default_message = "Conflict detected"

    def __init__(self, server_data: dict[str, Any] | None = None, message: str | None = None):
        super().__init__(message)
        self.server_data = server_data or {}

    @property
    def retryable(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "conflict": True,
            "serverData": self.server_data,
        }


class UnauthorizedError(SyncError):
    code = "unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class TransportError(SyncError):
    """Network failure talking to the sync server."""

    code = "transport_error"
    status_code = 503
    default_message = "Sync server unreachable"

    @property
    def retryable(self) -> bool:
        return True


class ServerError(SyncError):
    code = "server_error"
    status_code = 500
    default_message = "Internal server error"

    @property
    def retryable(self) -> bool:
        return True


_BY_CODE: dict[str, type[SyncError]] = {
    cls.code: cls
    for cls in (
        MissingFieldsError,
        InvalidModelError,
        InvalidOperationError,
        InvalidCheckpointError,
        InvalidDataError,
        RecordNotFoundError,
        UnauthorizedError,
        ServerError,
    )
}


def error_from_response(status_code: int, body: Any) -> SyncError:
    """Rebuild a ``SyncError`` from an HTTP error response."""
    payload = body if isinstance(body, dict) else {}
    message = payload.get("error") if isinstance(payload.get("error"), str) else None

    if status_code == 409 or payload.get("conflict"):
        server_data = payload.get("serverData")
        return ConflictError(server_data if isinstance(server_data, dict) else None, message)
    if status_code == 401:
        return UnauthorizedError(message)

    cls = _BY_CODE.get(str(payload.get("code") or ""))
    if cls is not None:
        return cls(message, status_code=status_code)
    if status_code == 404:
        return RecordNotFoundError(message)
    if 400 <= status_code < 500:
        return SyncError(message or f"Request rejected ({status_code})", status_code=status_code)
    return ServerError(message or f"Server error ({status_code})", status_code=status_code)
