"""
Score helpers: clamping and time utilities shared by all stages.
"""

from datetime import datetime, timezone
from typing import Optional


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite returns them naive)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hours_between(start: datetime, end: datetime) -> float:
    """Fractional hours from start to end (negative if start is later)."""
    return (ensure_utc(end) - ensure_utc(start)).total_seconds() / 3600.0


def days_between(start: Optional[datetime], end: datetime) -> int:
    """Whole days from start to end; 999 when start is unknown."""
    if start is None:
        return 999
    return (ensure_utc(end) - ensure_utc(start)).days


def recency_multiplier(age_hours: float) -> float:
    """
    Step recency score for content age.

    < 1h: 1.0, < 6h: 0.9, < 24h: 0.7, < 3d: 0.5, < 7d: 0.3, else 0.1.
    """
    if age_hours < 1:
        return 1.0
    if age_hours < 6:
        return 0.9
    if age_hours < 24:
        return 0.7
    if age_hours < 72:
        return 0.5
    if age_hours < 168:
        return 0.3
    return 0.1
