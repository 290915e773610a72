from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from brandbite.core.availability import (
    PAUSE_1_HOUR,
    PAUSE_7_DAYS,
    PAUSE_MANUAL,
    apply_pause,
    calculate_pause_expiry,
    clear_pause,
    is_creative_paused,
    is_valid_pause_type,
    pause_status,
)

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def blank_creative():
    return SimpleNamespace(is_paused=False, paused_at=None, pause_expires_at=None, pause_type=None)


def test_pause_types():
    assert is_valid_pause_type(PAUSE_1_HOUR)
    assert is_valid_pause_type(PAUSE_MANUAL)
    assert not is_valid_pause_type("FOREVER")
    assert not is_valid_pause_type(None)


def test_expiry_per_type():
    assert calculate_pause_expiry(PAUSE_1_HOUR, NOW) == NOW + timedelta(hours=1)
    assert calculate_pause_expiry(PAUSE_7_DAYS, NOW) == NOW + timedelta(days=7)
    assert calculate_pause_expiry(PAUSE_MANUAL, NOW) is None
    with pytest.raises(ValueError):
        calculate_pause_expiry("FOREVER", NOW)


def test_timed_pause_expires_lazily():
    creative = blank_creative()
    apply_pause(creative, PAUSE_1_HOUR, NOW)

    assert is_creative_paused(creative, NOW + timedelta(minutes=59))
    assert not is_creative_paused(creative, NOW + timedelta(hours=1))
    # flag is still set; the read treats it as expired
    assert creative.is_paused is True

    status = pause_status(creative, NOW + timedelta(hours=2))
    assert status["is_paused"] is False
    assert status["pause_type"] is None


def test_manual_pause_until_cleared():
    creative = blank_creative()
    apply_pause(creative, PAUSE_MANUAL, NOW)

    assert is_creative_paused(creative, NOW + timedelta(days=365))
    assert pause_status(creative, NOW)["remaining_seconds"] is None

    clear_pause(creative)
    assert not is_creative_paused(creative, NOW)


def test_remaining_seconds():
    creative = blank_creative()
    apply_pause(creative, PAUSE_1_HOUR, NOW)
    assert pause_status(creative, NOW + timedelta(minutes=30))["remaining_seconds"] == 1800
