"""Shared utilities for scoring and time arithmetic."""

from .scores import (
    clamp,
    days_between,
    ensure_utc,
    hours_between,
    recency_multiplier,
    utc_now,
)

__all__ = [
    "clamp",
    "days_between",
    "ensure_utc",
    "hours_between",
    "recency_multiplier",
    "utc_now",
]
