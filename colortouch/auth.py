"""Signed session tokens and the authenticated-user dependency.

Tokens are ``<base64url(json payload)>.<hex hmac-sha256>`` and travel either in
the session cookie or as a ``Bearer`` authorization header, so the desktop
shell and scripted clients can authenticate the same way.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass

from fastapi import Request

from .config import settings
from .errors import UnauthorizedError


@dataclass(frozen=True)
class AuthUser:
    user_id: str
    email: str | None = None


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * ((4 - (len(data) % 4)) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("utf-8"))


def _secret(settings_obj) -> str:
    return str(getattr(settings_obj, "auth_secret", "") or "").strip()


def _ttl_seconds(settings_obj) -> int:
    ttl = int(getattr(settings_obj, "auth_session_ttl_seconds", 86400) or 86400)
    return max(60, ttl)


def _sign(secret: str, body: str) -> str:
    return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_session_token(settings_obj, user: AuthUser) -> str:
    secret = _secret(settings_obj)
    if not secret:
        raise RuntimeError("auth_secret is required to issue session tokens")

    now = int(time.time())
    payload = {
        "sub": user.user_id,
        "email": user.email,
        "iat": now,
        "exp": now + _ttl_seconds(settings_obj),
    }
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_sign(secret, body)}"


def decode_session_token(settings_obj, token: str) -> AuthUser | None:
    secret = _secret(settings_obj)
    if not secret or not token:
        return None

    try:
        body, provided_sig = token.split(".", 1)
    except ValueError:
        return None

    if not hmac.compare_digest(provided_sig, _sign(secret, body)):
        return None

    try:
        payload = json.loads(_b64url_decode(body))
    except (ValueError, UnicodeDecodeError):
        return None

    if not isinstance(payload, dict):
        return None

    exp = payload.get("exp")
    sub = payload.get("sub")
    email = payload.get("email")
    if not isinstance(exp, int) or exp <= int(time.time()):
        return None
    if not isinstance(sub, str) or not sub.strip():
        return None
    return AuthUser(user_id=sub.strip(), email=email if isinstance(email, str) else None)


def _extract_token_from_request(request: Request, settings_obj) -> str:
    cookie_token = request.cookies.get(settings_obj.auth_cookie_name, "")
    if cookie_token:
        return cookie_token

    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return ""


def current_user_from_request(request: Request, settings_obj=settings) -> AuthUser | None:
    return decode_session_token(settings_obj, _extract_token_from_request(request, settings_obj))


async def get_current_user(request: Request) -> AuthUser:
    """FastAPI dependency: the session user, or a 401."""
    user = current_user_from_request(request, settings)
    if user is None:
        raise UnauthorizedError()
    request.state.auth_user = user
    return user
