"""UTC timestamp helpers.

Every timestamp stored or compared by the sync layer is a timezone-aware UTC
``datetime``. SQLite drops tzinfo on the way back, so values read from the
database go through ``as_utc`` before they are compared.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError

_DATETIME = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO-8601 string (or datetime / epoch millis) into aware UTC.

    Returns None for None or empty strings. Raises ValueError on garbage.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        return as_utc(_DATETIME.validate_python(value))
    except ValidationError as e:
        raise ValueError(f"Invalid timestamp: {value!r}") from e


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")
