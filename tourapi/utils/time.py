# tourapi/utils/time.py
from __future__ import annotations

from datetime import datetime, timezone


def now_utc() -> datetime:
    """Fecha/hora actual en UTC (aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Normaliza a UTC aware. SQLite devuelve datetimes naive: se asumen UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def minutes_between(start: datetime | None, end: datetime | None) -> float | None:
    if start is None or end is None:
        return None
    return (as_utc(end) - as_utc(start)).total_seconds() / 60.0
