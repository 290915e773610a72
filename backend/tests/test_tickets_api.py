from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from brandbite.core.availability import PAUSE_MANUAL, apply_pause
from brandbite.core.enums import LedgerDirection, LedgerReason, TicketPriority
from brandbite.core.roles import CompanyRole
from brandbite.models.ledger_entry import LedgerEntry


async def create_ticket(client, headers, **body):
    body.setdefault("title", "Landing page hero")
    return await client.post("/api/customer/tickets", json=body, headers=headers)


@pytest.mark.asyncio
async def test_intake_debits_company_and_numbers_from_101(client, db, seed, headers_for):
    company = await seed.company(tokens=100, auto_assign_enabled=False)
    owner = await seed.member(company)
    job = await seed.job_type(estimated_hours=10)
    headers = headers_for(owner, company)

    first = await create_ticket(client, headers, job_type_id=str(job.id), quantity=2)
    assert first.status_code == 201, first.text
    body = first.json()
    assert body["company_ticket_number"] == 101
    assert body["code"] == "#101"
    assert body["status"] == "TODO"
    assert body["creative_id"] is None
    assert body["created_by_id"] == str(owner.id)

    second = await create_ticket(client, headers, title="Logo refresh")
    assert second.json()["company_ticket_number"] == 102

    await db.refresh(company)
    assert company.token_balance == 80

    entries = (
        await db.execute(select(LedgerEntry).where(LedgerEntry.ticket_id == uuid.UUID(body["id"])))
    ).scalars().all()
    assert len(entries) == 1
    assert entries[0].direction == LedgerDirection.DEBIT
    assert entries[0].amount == 20
    assert entries[0].reason == LedgerReason.JOB_REQUEST_CREATED.value
    assert (entries[0].balance_before, entries[0].balance_after) == (100, 80)


@pytest.mark.asyncio
async def test_numbering_is_per_company(client, seed, headers_for):
    a = await seed.company()
    b = await seed.company()
    await create_ticket(client, headers_for(await seed.member(a), a))

    r = await create_ticket(client, headers_for(await seed.member(b), b))
    assert r.json()["company_ticket_number"] == 101


@pytest.mark.asyncio
async def test_project_code_prefixes_the_ticket_code(client, seed, headers_for):
    company = await seed.company()
    project = await seed.project(company, code="WEB")
    r = await create_ticket(client, headers_for(await seed.member(company), company), project_id=str(project.id))
    assert r.status_code == 201, r.text
    assert r.json()["code"] == "WEB-101"


@pytest.mark.asyncio
async def test_project_of_another_company_is_not_found(client, seed, headers_for):
    company = await seed.company()
    other = await seed.company()
    project = await seed.project(other)
    r = await create_ticket(client, headers_for(await seed.member(company), company), project_id=str(project.id))
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_insufficient_company_balance_creates_nothing(client, db, seed, headers_for):
    company = await seed.company(tokens=5)
    job = await seed.job_type(estimated_hours=10)

    r = await create_ticket(client, headers_for(await seed.member(company), company), job_type_id=str(job.id))
    assert r.status_code == 400, r.text
    detail = r.json()["detail"]
    assert detail["code"] == "insufficient_balance"
    assert (detail["balance"], detail["required"]) == (5, 10)

    await db.refresh(company)
    assert company.token_balance == 5
    board = await client.get("/api/customer/tickets", headers=headers_for(await seed.member(company), company))
    assert board.json()["total"] == 0


@pytest.mark.asyncio
async def test_inactive_job_type_is_not_found(client, seed, headers_for):
    company = await seed.company(tokens=50)
    job = await seed.job_type(is_active=False)
    r = await create_ticket(client, headers_for(await seed.member(company), company), job_type_id=str(job.id))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_quantity_is_bounded(client, seed, headers_for):
    company = await seed.company()
    r = await create_ticket(client, headers_for(await seed.member(company), company), quantity=11)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_billing_members_cannot_create_tickets(client, seed, headers_for):
    company = await seed.company(tokens=50)
    billing = await seed.member(company, CompanyRole.BILLING)

    r = await create_ticket(client, headers_for(billing, company))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "company_role_forbidden"

    # but they can read the board
    board = await client.get("/api/customer/board", headers=headers_for(billing, company))
    assert board.status_code == 200


@pytest.mark.asyncio
async def test_auto_assign_picks_least_loaded_unpaused_creative(client, db, seed, headers_for):
    company = await seed.company(tokens=100)
    busy = await seed.creative()
    idle_but_paused = await seed.creative()
    idle = await seed.creative()
    job = await seed.job_type(estimated_hours=10)

    await seed.ticket(company, creative=busy, job_type=job, priority=TicketPriority.HIGH)
    apply_pause(idle_but_paused, PAUSE_MANUAL)
    await db.commit()

    r = await create_ticket(client, headers_for(await seed.member(company), company))
    assert r.status_code == 201, r.text
    assert r.json()["creative_id"] == str(idle.id)


@pytest.mark.asyncio
async def test_auto_assign_ties_go_to_oldest_creative(client, seed, headers_for):
    company = await seed.company()
    first = await seed.creative()
    await seed.creative()

    r = await create_ticket(client, headers_for(await seed.member(company), company))
    assert r.json()["creative_id"] == str(first.id)


@pytest.mark.asyncio
async def test_customer_board_groups_by_status(client, seed, headers_for):
    company = await seed.company()
    owner = await seed.member(company)
    headers = headers_for(owner, company)
    await create_ticket(client, headers)
    await create_ticket(client, headers)

    r = await client.get("/api/customer/board", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert [c["status"] for c in body["columns"]] == ["TODO", "IN_PROGRESS", "IN_REVIEW", "DONE"]
    assert body["counts"] == {"TODO": 2, "IN_PROGRESS": 0, "IN_REVIEW": 0, "DONE": 0}


@pytest.mark.asyncio
async def test_comments_round_trip(client, seed, headers_for):
    company = await seed.company()
    member = await seed.member(company, CompanyRole.MEMBER)
    headers = headers_for(member, company)
    ticket_id = (await create_ticket(client, headers)).json()["id"]

    r = await client.post(f"/api/customer/tickets/{ticket_id}/comments", json={"body": "  Use the new palette "}, headers=headers)
    assert r.status_code == 201, r.text
    assert r.json()["body"] == "Use the new palette"

    r = await client.get(f"/api/customer/tickets/{ticket_id}/comments", headers=headers)
    assert [c["author_id"] for c in r.json()] == [str(member.id)]


@pytest.mark.asyncio
async def test_tickets_of_other_companies_are_hidden(client, seed, headers_for):
    mine = await seed.company()
    theirs = await seed.company()
    foreign = await seed.ticket(theirs)

    r = await client.get(f"/api/customer/tickets/{foreign.id}", headers=headers_for(await seed.member(mine), mine))
    assert r.status_code == 404
