from __future__ import annotations

from datetime import datetime, timezone


def aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def aware_or_none(value: datetime | None) -> datetime | None:
    return aware(value) if value is not None else None
