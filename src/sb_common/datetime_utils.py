"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def battle_deadline(started_at: datetime, duration_minutes: int) -> datetime:
    """Logical end of a live battle: started_at + duration."""
    return ensure_utc(started_at) + timedelta(minutes=duration_minutes)

