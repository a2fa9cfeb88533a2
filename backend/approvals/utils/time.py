"""Time Utilities - UTC timestamps and stored time formats"""
from datetime import datetime, timezone, timedelta
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    ISO 8601 string as stored on workflow documents

    Naive datetimes are taken as UTC; UTC is written with a 'Z' suffix.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def days_ago(days: int) -> datetime:
    """Start of a reporting window ending now"""
    return utc_now() - timedelta(days=days)


def round_hours(hours: Optional[float]) -> Optional[float]:
    """Durations are reported in hours with one decimal"""
    return round(hours, 1) if hours is not None else None
