from __future__ import annotations

from datetime import timedelta

import pytest

from brandbite.core.enums import TicketStatus
from brandbite.core.errors import ValidationFailed
from brandbite.core.payout_tiers import current_payout_percent, evaluate_payout, validate_payout_percent
from brandbite.db.types import utcnow


async def complete_tickets(seed, company, creative, count: int, days_ago: int = 1):
    for _ in range(count):
        await seed.ticket(
            company,
            creative=creative,
            status=TicketStatus.DONE,
            completed_at=utcnow() - timedelta(days=days_ago),
        )


@pytest.mark.asyncio
async def test_no_tiers_means_base_percent(db, seed):
    creative = await seed.creative()
    evaluation = await evaluate_payout(db, creative.id)
    assert evaluation.payout_percent == 60
    assert evaluation.matched_tier is None
    assert evaluation.progress == []


@pytest.mark.asyncio
async def test_seven_completions_reach_the_70_tier(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    await seed.tier("Silver", min_completed_tickets=5, payout_percent=70)
    await seed.tier("Gold", min_completed_tickets=10, payout_percent=80)
    await complete_tickets(seed, company, creative, 7)

    evaluation = await evaluate_payout(db, creative.id)
    assert evaluation.payout_percent == 70
    assert evaluation.matched_tier_name == "Silver"
    assert [(p.tier.name, p.completed_in_window, p.qualified) for p in evaluation.progress] == [
        ("Silver", 7, True),
        ("Gold", 7, False),
    ]


@pytest.mark.asyncio
async def test_completions_outside_the_window_do_not_count(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    await seed.tier("Silver", min_completed_tickets=5, payout_percent=70, time_window_days=30)
    await complete_tickets(seed, company, creative, 4)
    await complete_tickets(seed, company, creative, 3, days_ago=45)

    assert await current_payout_percent(db, creative.id) == 60


@pytest.mark.asyncio
async def test_open_tickets_and_other_creatives_do_not_count(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    other = await seed.creative()
    await seed.tier("Starter", min_completed_tickets=1, payout_percent=65)

    await seed.ticket(company, creative=creative, status=TicketStatus.IN_REVIEW)
    await complete_tickets(seed, company, other, 3)

    assert await current_payout_percent(db, creative.id) == 60
    assert await current_payout_percent(db, other.id) == 65


@pytest.mark.asyncio
async def test_highest_percent_wins_and_inactive_tiers_are_ignored(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    await seed.tier("Low bar", min_completed_tickets=1, payout_percent=65)
    await seed.tier("Promo", min_completed_tickets=1, payout_percent=95, is_active=False)
    await seed.tier("High bar", min_completed_tickets=2, payout_percent=75)
    await complete_tickets(seed, company, creative, 2)

    evaluation = await evaluate_payout(db, creative.id)
    assert evaluation.payout_percent == 75
    assert evaluation.matched_tier_name == "High bar"
    assert {p.tier.name for p in evaluation.progress} == {"Low bar", "High bar"}


@pytest.mark.asyncio
async def test_equal_percent_goes_to_earliest_tier(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    first = await seed.tier("First", min_completed_tickets=1, payout_percent=70)
    await seed.tier("Second", min_completed_tickets=1, payout_percent=70, created_at=first.created_at + timedelta(seconds=5))
    await complete_tickets(seed, company, creative, 1)

    assert (await evaluate_payout(db, creative.id)).matched_tier_name == "First"


@pytest.mark.asyncio
async def test_more_completions_never_lower_the_percent(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    await seed.tier("Silver", min_completed_tickets=2, payout_percent=70)
    await seed.tier("Gold", min_completed_tickets=4, payout_percent=80)

    seen = []
    for _ in range(5):
        await complete_tickets(seed, company, creative, 1)
        seen.append(await current_payout_percent(db, creative.id))

    assert seen == sorted(seen)
    assert seen == [60, 70, 70, 80, 80]


@pytest.mark.asyncio
async def test_tier_at_or_below_base_never_lowers_the_percent(db, seed):
    company = await seed.company()
    creative = await seed.creative()
    # rows that predate percent validation
    await seed.tier("Legacy", min_completed_tickets=1, payout_percent=50)
    await seed.tier("Flat", min_completed_tickets=2, payout_percent=60)
    await complete_tickets(seed, company, creative, 3)

    evaluation = await evaluate_payout(db, creative.id)
    assert evaluation.payout_percent == 60
    assert evaluation.matched_tier is None


@pytest.mark.parametrize("percent", [0, 50, 60, 101])
def test_payout_percent_must_beat_the_base(percent):
    with pytest.raises(ValidationFailed) as exc:
        validate_payout_percent(percent)
    assert exc.value.code == "invalid_payout_percent"


def test_payout_percent_bounds_are_accepted():
    assert validate_payout_percent(61) == 61
    assert validate_payout_percent(100) == 100
