from __future__ import annotations

import uuid

import pytest
from sqlalchemy import func, select

from brandbite.core.enums import LedgerDirection, LedgerReason
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.withdrawal import Withdrawal


async def withdrawal_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(Withdrawal))).scalar_one()


async def request_withdrawal(client, headers, amount: int):
    return await client.post("/api/creative/withdrawals", json={"amount_tokens": amount}, headers=headers)


async def act(client, headers, withdrawal_id, action: str, reason=None):
    body = {"id": withdrawal_id, "action": action}
    if reason is not None:
        body["reason"] = reason
    return await client.patch("/api/admin/withdrawals", json=body, headers=headers)


@pytest.mark.asyncio
async def test_withdrawal_above_balance_is_rejected_without_a_record(client, db, seed, headers_for):
    creative = await seed.creative()
    await seed.credit(creative, 30)

    r = await request_withdrawal(client, headers_for(creative), 50)

    assert r.status_code == 400, r.text
    detail = r.json()["detail"]
    assert detail["code"] == "insufficient_balance"
    assert detail["available"] == 30
    assert detail["requested"] == 50
    assert await withdrawal_count(db) == 0


@pytest.mark.asyncio
async def test_withdrawal_below_minimum(client, db, seed, headers_for):
    creative = await seed.creative()
    await seed.credit(creative, 100)

    r = await request_withdrawal(client, headers_for(creative), 10)

    assert r.status_code == 400, r.text
    assert r.json()["detail"]["code"] == "below_minimum_withdrawal"
    assert r.json()["detail"]["minimum"] == 20
    assert await withdrawal_count(db) == 0


@pytest.mark.asyncio
async def test_in_flight_requests_are_reserved(client, seed, headers_for):
    creative = await seed.creative()
    await seed.credit(creative, 60)
    headers = headers_for(creative)

    assert (await request_withdrawal(client, headers, 40)).status_code == 201
    r = await request_withdrawal(client, headers, 30)
    assert r.status_code == 400, r.text
    assert r.json()["detail"]["available"] == 20

    listing = await client.get("/api/creative/withdrawals", headers=headers)
    assert listing.status_code == 200
    stats = listing.json()["stats"]
    assert stats["available_balance"] == 20
    assert stats["pending_count"] == 1
    assert stats["min_withdrawal_tokens"] == 20


@pytest.mark.asyncio
async def test_approve_then_mark_paid_debits_the_creative(client, db, seed, headers_for):
    creative = await seed.creative()
    admin = await seed.admin()
    await seed.credit(creative, 100)

    created = await request_withdrawal(client, headers_for(creative), 40)
    assert created.status_code == 201, created.text
    wid = created.json()["id"]
    assert created.json()["status"] == "PENDING"

    approved = await act(client, headers_for(admin), wid, "APPROVE")
    assert approved.status_code == 200, approved.text
    assert approved.json()["status"] == "APPROVED"
    assert approved.json()["approved_at"] is not None

    # approval alone moves no tokens
    await db.refresh(creative)
    assert creative.token_balance == 100

    paid = await act(client, headers_for(admin), wid, "MARK_PAID")
    assert paid.status_code == 200, paid.text
    body = paid.json()
    assert body["status"] == "PAID"
    assert body["paid_at"] is not None
    assert body["ledger_entry_id"] is not None

    await db.refresh(creative)
    assert creative.token_balance == 60

    entry = await db.get(LedgerEntry, uuid.UUID(body["ledger_entry_id"]))
    assert entry.direction == LedgerDirection.DEBIT
    assert entry.amount == 40
    assert entry.reason == LedgerReason.WITHDRAWAL_PAID.value
    assert (entry.balance_before, entry.balance_after) == (100, 60)


@pytest.mark.asyncio
async def test_reject_requires_a_reason_and_moves_nothing(client, db, seed, headers_for):
    creative = await seed.creative()
    admin = await seed.admin()
    await seed.credit(creative, 50)
    wid = (await request_withdrawal(client, headers_for(creative), 25)).json()["id"]

    r = await act(client, headers_for(admin), wid, "REJECT", reason="   ")
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "reject_reason_required"

    r = await act(client, headers_for(admin), wid, "REJECT", reason="Bank details missing")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "REJECTED"
    assert r.json()["admin_reject_reason"] == "Bank details missing"

    await db.refresh(creative)
    assert creative.token_balance == 50


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "setup, action",
    [
        ([], "MARK_PAID"),
        (["APPROVE"], "APPROVE"),
        (["APPROVE"], "REJECT"),
        (["APPROVE", "MARK_PAID"], "MARK_PAID"),
        (["REJECT"], "APPROVE"),
    ],
)
async def test_illegal_withdrawal_transitions_conflict(client, db, seed, headers_for, setup, action):
    creative = await seed.creative()
    admin = await seed.admin()
    await seed.credit(creative, 100)
    wid = (await request_withdrawal(client, headers_for(creative), 30)).json()["id"]

    for step in setup:
        r = await act(client, headers_for(admin), wid, step, reason="no")
        assert r.status_code == 200, r.text

    before = (await db.get(Withdrawal, uuid.UUID(wid))).status
    r = await act(client, headers_for(admin), wid, action, reason="no")
    assert r.status_code == 409, r.text
    assert r.json()["detail"]["code"] == "invalid_transition"

    w = await db.get(Withdrawal, uuid.UUID(wid))
    await db.refresh(w)
    assert w.status == before


@pytest.mark.asyncio
async def test_admin_can_raise_the_minimum(client, seed, headers_for):
    creative = await seed.creative()
    admin = await seed.admin()
    await seed.credit(creative, 100)

    r = await client.patch("/api/admin/settings", json={"min_withdrawal_tokens": 50}, headers=headers_for(admin))
    assert r.status_code == 200, r.text
    assert r.json()["settings"]["MIN_WITHDRAWAL_TOKENS"] == "50"

    r = await request_withdrawal(client, headers_for(creative), 40)
    assert r.status_code == 400
    assert r.json()["detail"]["minimum"] == 50


@pytest.mark.asyncio
async def test_only_creatives_request_withdrawals(client, seed, headers_for):
    company = await seed.company()
    owner = await seed.member(company)
    r = await request_withdrawal(client, headers_for(owner), 20)
    assert r.status_code == 403
