"""Time-of-day bucketing for scan behavior counters."""

from __future__ import annotations

from datetime import datetime


def time_slot_for_hour(hour: int) -> str:
    if 11 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    if hour >= 22 or hour < 5:
        return "night"
    return "morning"


def current_time_slot(now: datetime | None = None) -> str:
    """Slot for the server's local wall clock."""
    return time_slot_for_hour((now or datetime.now()).hour)
