from datetime import datetime, timezone as dt_timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from medilink.core.config import settings


def get_zoneinfo(tz_name: Optional[str] = None) -> Optional[ZoneInfo]:
    name = tz_name or getattr(settings, "DEFAULT_TIMEZONE", None)
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def utc_now() -> datetime:
    return datetime.now(dt_timezone.utc)


def to_utc_aware(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-aware (tzinfo=UTC).
    - Aware datetimes are converted to UTC
    - Naive datetimes are assumed UTC and tz attached
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def to_utc_naive(dt: datetime | None) -> datetime | None:
    """
    Normalize any datetime to UTC-naive for columns that drop tzinfo (SQLite).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def isoformat_utc(dt: datetime) -> str:
    """Render as ``2026-10-19T11:00:00.000Z``, the shape JavaScript clients parse."""
    aware = to_utc_aware(dt)
    return aware.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_short_datetime(dt: datetime, tz: Optional[ZoneInfo] = None) -> str:
    """
    US-style short date/time, e.g. ``Oct 19, 11:00 AM``.
    Falls back to UTC when no timezone is given or configured.
    """
    zone = tz or get_zoneinfo() or dt_timezone.utc
    local = to_utc_aware(dt).astimezone(zone)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local.strftime('%b')} {local.day}, {hour}:{local.minute:02d} {meridiem}"
