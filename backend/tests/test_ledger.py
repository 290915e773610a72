from __future__ import annotations

import pytest
from sqlalchemy import select

from brandbite.core import ledger
from brandbite.core.enums import LedgerDirection, LedgerOwnerType, LedgerReason
from brandbite.core.errors import InsufficientBalance, ValidationFailed
from brandbite.models.ledger_entry import LedgerEntry


async def entries_for(db, owner):
    owner_type = ledger.owner_type_of(owner)
    column = LedgerEntry.company_id if owner_type == LedgerOwnerType.COMPANY else LedgerEntry.user_id
    stmt = select(LedgerEntry).where(LedgerEntry.owner_type == owner_type, column == owner.id)
    rows = (await db.execute(stmt)).scalars().all()
    return sorted(rows, key=lambda e: (e.created_at, e.balance_before))


@pytest.mark.asyncio
async def test_credit_appends_entry_with_snapshots(db, seed):
    company = await seed.company(tokens=100)

    entry = await ledger.credit(db, company, 50, LedgerReason.PLAN_RENEWAL)
    await db.commit()

    assert entry.direction == LedgerDirection.CREDIT
    assert (entry.balance_before, entry.balance_after) == (100, 150)
    assert entry.owner_type == LedgerOwnerType.COMPANY
    assert entry.company_id == company.id
    assert entry.user_id is None

    await db.refresh(company)
    assert company.token_balance == 150
    assert await ledger.ledger_balance(db, company) == 150

    rows = await entries_for(db, company)
    assert [(r.direction, r.amount) for r in rows] == [
        (LedgerDirection.CREDIT, 100),
        (LedgerDirection.CREDIT, 50),
    ]


@pytest.mark.asyncio
async def test_debit_beyond_balance_is_rejected_without_an_entry(db, seed):
    creative = await seed.creative()
    await seed.credit(creative, 30)

    with pytest.raises(InsufficientBalance) as exc:
        await ledger.debit(db, creative, 50, LedgerReason.WITHDRAWAL_PAID)
    assert exc.value.extra == {"balance": 30, "required": 50}
    await db.rollback()

    await db.refresh(creative)
    assert creative.token_balance == 30
    assert len(await entries_for(db, creative)) == 1


@pytest.mark.asyncio
async def test_debit_to_exactly_zero(db, seed):
    creative = await seed.creative()
    await seed.credit(creative, 30)

    entry = await ledger.debit(db, creative, 30, LedgerReason.WITHDRAWAL_PAID)
    await db.commit()

    assert (entry.balance_before, entry.balance_after) == (30, 0)
    assert entry.user_id == creative.id


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, True, 2.5])
async def test_amount_must_be_a_positive_integer(db, seed, amount):
    company = await seed.company(tokens=10)
    with pytest.raises(ValidationFailed):
        await ledger.credit(db, company, amount, LedgerReason.ADMIN_ADJUSTMENT)


@pytest.mark.asyncio
async def test_recalculate_repairs_a_drifted_cache(db, seed):
    company = await seed.company(tokens=40)
    await ledger.debit(db, company, 15, LedgerReason.JOB_REQUEST_CREATED)
    await db.commit()

    company.token_balance = 999
    await db.commit()

    assert await ledger.recalculate_balance(db, company) == 25
    await db.commit()
    await db.refresh(company)
    assert company.token_balance == 25


@pytest.mark.asyncio
async def test_has_entry_for_ticket(db, seed):
    company = await seed.company(tokens=10)
    ticket = await seed.ticket(company)

    assert not await ledger.has_entry_for_ticket(db, ticket.id, LedgerReason.JOB_REQUEST_CREATED)
    await ledger.debit(db, company, 5, LedgerReason.JOB_REQUEST_CREATED, ticket_id=ticket.id)
    assert await ledger.has_entry_for_ticket(db, ticket.id, LedgerReason.JOB_REQUEST_CREATED)
    assert not await ledger.has_entry_for_ticket(db, ticket.id, LedgerReason.TICKET_COMPLETED_PAYOUT)


@pytest.mark.asyncio
async def test_mixed_movements_chain_balances(db, seed):
    creative = await seed.creative()

    chain = [
        await ledger.credit(db, creative, 100, LedgerReason.TICKET_COMPLETED_PAYOUT),
        await ledger.debit(db, creative, 30, LedgerReason.WITHDRAWAL_PAID),
        await ledger.credit(db, creative, 5, LedgerReason.ADMIN_ADJUSTMENT),
        await ledger.debit(db, creative, 75, LedgerReason.WITHDRAWAL_PAID),
    ]
    await db.commit()

    assert chain[0].balance_before == 0
    for prev, nxt in zip(chain, chain[1:]):
        assert nxt.balance_before == prev.balance_after
    for entry in chain:
        sign = 1 if entry.direction == LedgerDirection.CREDIT else -1
        assert entry.balance_after - entry.balance_before == sign * entry.amount

    await db.refresh(creative)
    assert chain[-1].balance_after == 0
    assert creative.token_balance == 0
    assert await ledger.ledger_balance(db, creative) == 0
