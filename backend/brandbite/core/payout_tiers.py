# brandbite/core/payout_tiers.py
"""
Creative payout percent from recent completions.

For every active tier, count the creative's DONE tickets completed within the
tier's rolling window. A tier qualifies when that count reaches
min_completed_tickets. The highest payout_percent among qualifying tiers wins
(equal percents: earliest-created tier). Nothing qualifies -> base percent.
Tier percents are always above the base percent (validate_payout_percent).

Evaluated against "now" on every call; never cached.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.config import settings
from brandbite.core.enums import TicketStatus
from brandbite.core.errors import ValidationFailed
from brandbite.db.types import utcnow
from brandbite.models.payout_tier import PayoutTier
from brandbite.models.ticket import Ticket


@dataclass(frozen=True)
class TierProgress:
    tier: PayoutTier
    completed_in_window: int

    @property
    def qualified(self) -> bool:
        return self.completed_in_window >= self.tier.min_completed_tickets


@dataclass(frozen=True)
class PayoutEvaluation:
    payout_percent: int
    matched_tier: Optional[PayoutTier] = None
    progress: list[TierProgress] = field(default_factory=list)

    @property
    def matched_tier_name(self) -> Optional[str]:
        return self.matched_tier.name if self.matched_tier else None


def validate_payout_percent(percent: int) -> int:
    """A tier must pay more than the base percent and at most 100."""
    base = settings.BASE_PAYOUT_PERCENT
    if not base < percent <= 100:
        raise ValidationFailed(
            f"payout_percent must be greater than {base} and at most 100",
            code="invalid_payout_percent",
            payout_percent=percent,
            base_payout_percent=base,
        )
    return percent


def select_best_tier(progress: Sequence[TierProgress]) -> Optional[PayoutTier]:
    # a tier at or below the base percent never wins, so more completions never pay less
    qualifying = [
        p.tier for p in progress if p.qualified and p.tier.payout_percent > settings.BASE_PAYOUT_PERCENT
    ]
    if not qualifying:
        return None
    # highest percent first, then creation order
    qualifying.sort(key=lambda t: (-t.payout_percent, t.created_at, str(t.id)))
    return qualifying[0]


async def count_completed_since(db: AsyncSession, creative_id: uuid.UUID, since: datetime) -> int:
    stmt = select(func.count(Ticket.id)).where(
        Ticket.creative_id == creative_id,
        Ticket.status == TicketStatus.DONE,
        Ticket.completed_at.is_not(None),
        Ticket.completed_at >= since,
    )
    return int((await db.execute(stmt)).scalar() or 0)


async def active_tiers(db: AsyncSession) -> list[PayoutTier]:
    stmt = (
        select(PayoutTier)
        .where(PayoutTier.is_active.is_(True))
        .order_by(PayoutTier.payout_percent.asc(), PayoutTier.created_at.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def evaluate_payout(
    db: AsyncSession,
    creative_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> PayoutEvaluation:
    now = now or utcnow()
    progress: list[TierProgress] = []
    counts_by_window: dict[int, int] = {}

    for tier in await active_tiers(db):
        days = tier.time_window_days
        if days not in counts_by_window:
            counts_by_window[days] = await count_completed_since(db, creative_id, now - timedelta(days=days))
        progress.append(TierProgress(tier=tier, completed_in_window=counts_by_window[days]))

    best = select_best_tier(progress)
    percent = best.payout_percent if best else settings.BASE_PAYOUT_PERCENT
    return PayoutEvaluation(payout_percent=percent, matched_tier=best, progress=progress)


async def current_payout_percent(db: AsyncSession, creative_id: uuid.UUID, now: Optional[datetime] = None) -> int:
    return (await evaluate_payout(db, creative_id, now)).payout_percent
