# brandbite/core/app_settings.py
from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.config import settings
from brandbite.models.app_setting import AppSetting

MIN_WITHDRAWAL_TOKENS = "MIN_WITHDRAWAL_TOKENS"

# Known keys with their built-in defaults (used until an admin stores a value)
DEFAULTS: dict[str, str] = {
    MIN_WITHDRAWAL_TOKENS: str(settings.DEFAULT_MIN_WITHDRAWAL_TOKENS),
}


async def get_app_setting(db: AsyncSession, key: str) -> Optional[str]:
    row = await db.get(AppSetting, key)
    if row is not None:
        return row.value
    return DEFAULTS.get(key)


async def get_app_setting_int(db: AsyncSession, key: str, fallback: int) -> int:
    raw = await get_app_setting(db, key)
    if raw is None:
        return fallback
    try:
        return int(str(raw).strip())
    except ValueError:
        return fallback


async def set_app_setting(db: AsyncSession, key: str, value: str) -> AppSetting:
    """Upsert. Caller commits."""
    row = await db.get(AppSetting, key)
    if row is None:
        row = AppSetting(key=key, value=value)
        db.add(row)
    else:
        row.value = value
    await db.flush()
    return row


async def all_settings(db: AsyncSession) -> dict[str, str]:
    out = dict(DEFAULTS)
    for key in DEFAULTS:
        row = await db.get(AppSetting, key)
        if row is not None:
            out[key] = row.value
    return out


async def min_withdrawal_tokens(db: AsyncSession) -> int:
    return await get_app_setting_int(db, MIN_WITHDRAWAL_TOKENS, settings.DEFAULT_MIN_WITHDRAWAL_TOKENS)
