"""ColorTouch configuration via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class ColorTouchSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///colortouch.db"
    echo_sql: bool = False
    app_title: str = "ColorTouch CRM"
    log_level: str = "INFO"

    # Session tokens (cookie or bearer)
    auth_secret: str = ""
    auth_cookie_name: str = "colortouch_session"
    auth_session_ttl_seconds: int = 86400

    # Client-local store: change queue, checkpoint and mirror
    local_store_url: str = "sqlite+aiosqlite:///colortouch_local.db"

    # Upstream server the local coordinator pushes to / pulls from
    sync_remote_url: str = "http://localhost:8030"
    sync_remote_token: str | None = None
    sync_timeout_seconds: float | None = None
    sync_initial_delay_seconds: float = 5.0
    sync_pull_lookback_hours: int = 24
    sync_enabled: bool = False
    sync_start_online: bool = True

    model_config = {"env_prefix": "COLORTOUCH_", "env_file": ".env", "extra": "ignore"}


settings = ColorTouchSettings()
