# brandbite/core/availability.py
"""
Creative pause / availability.

Expiry is evaluated at read time: a timed pause whose pause_expires_at has
passed simply reads as "not paused". Nothing needs to clear the flag.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

from brandbite.db.types import utcnow

PAUSE_1_HOUR = "1_HOUR"
PAUSE_7_DAYS = "7_DAYS"
PAUSE_MANUAL = "MANUAL"

PAUSE_DURATIONS: dict[str, Optional[timedelta]] = {
    PAUSE_1_HOUR: timedelta(hours=1),
    PAUSE_7_DAYS: timedelta(days=7),
    PAUSE_MANUAL: None,
}


def is_valid_pause_type(value: str | None) -> bool:
    return value in PAUSE_DURATIONS


def calculate_pause_expiry(pause_type: str, now: Optional[datetime] = None) -> Optional[datetime]:
    if pause_type not in PAUSE_DURATIONS:
        raise ValueError(f"Unknown pause type: {pause_type!r}")
    delta = PAUSE_DURATIONS[pause_type]
    if delta is None:
        return None
    return (now or utcnow()) + delta


def is_creative_paused(creative: Any, now: Optional[datetime] = None) -> bool:
    if not getattr(creative, "is_paused", False):
        return False
    expires_at = getattr(creative, "pause_expires_at", None)
    if expires_at is None:
        return True  # manual pause
    return expires_at > (now or utcnow())


def apply_pause(creative: Any, pause_type: str, now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    creative.is_paused = True
    creative.paused_at = now
    creative.pause_type = pause_type
    creative.pause_expires_at = calculate_pause_expiry(pause_type, now)


def clear_pause(creative: Any) -> None:
    creative.is_paused = False
    creative.paused_at = None
    creative.pause_type = None
    creative.pause_expires_at = None


def pause_status(creative: Any, now: Optional[datetime] = None) -> dict[str, Any]:
    """API view; stale flags of expired pauses read as unpaused."""
    now = now or utcnow()
    paused = is_creative_paused(creative, now)
    expires_at = creative.pause_expires_at if paused else None
    remaining_seconds = None
    if paused and expires_at is not None:
        remaining_seconds = max(0, int((expires_at - now).total_seconds()))
    return {
        "is_paused": paused,
        "paused_at": creative.paused_at if paused else None,
        "pause_expires_at": expires_at,
        "pause_type": creative.pause_type if paused else None,
        "remaining_seconds": remaining_seconds,
    }
