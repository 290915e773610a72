# brandbite/core/pricing.py
"""
Job-type pricing policy. Central so endpoints never compute costs inline.
  token_cost             = estimated_hours * TOKENS_PER_HOUR
  creative_payout_tokens = round(token_cost * BASE_PAYOUT_PERCENT / 100)
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from brandbite.core.config import settings

TOKENS_PER_HOUR = 1


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def token_cost_for_hours(estimated_hours: int) -> int:
    if estimated_hours <= 0:
        raise ValueError("estimated_hours must be positive")
    return estimated_hours * TOKENS_PER_HOUR


def creative_payout_for_cost(token_cost: int, percent: int | None = None) -> int:
    pct = settings.BASE_PAYOUT_PERCENT if percent is None else percent
    return _round_half_up(Decimal(token_cost) * Decimal(pct) / Decimal(100))


def price_job_type(estimated_hours: int) -> tuple[int, int]:
    """(token_cost, creative_payout_tokens) for the given estimate."""
    cost = token_cost_for_hours(estimated_hours)
    return cost, creative_payout_for_cost(cost)


def scaled_payout(base_payout_tokens: int, payout_percent: int) -> int:
    """
    Creative credit for a completed job:
      round(base_payout_tokens * payout_percent / BASE_PAYOUT_PERCENT)
    base_payout_tokens already carries the base percent, so the base tier pays it unchanged.
    """
    if base_payout_tokens <= 0:
        return 0
    return _round_half_up(
        Decimal(base_payout_tokens) * Decimal(payout_percent) / Decimal(settings.BASE_PAYOUT_PERCENT)
    )
