from __future__ import annotations

import uuid

import pytest

from brandbite.core.projects import suggest_project_code
from brandbite.core.roles import CompanyRole
from brandbite.models.ticket import Ticket


@pytest.mark.parametrize(
    "name, code",
    [
        ("Website Redesign", "WR"),
        ("Packaging", "PACK"),
        ("Q3 brand refresh campaign", "QBR"),
        ("X", "PRJ"),
    ],
)
def test_suggested_codes(name, code):
    assert suggest_project_code(name) == code


@pytest.mark.asyncio
async def test_create_project_derives_unique_codes(client, seed, headers_for):
    company = await seed.company()
    headers = headers_for(await seed.member(company), company)

    r = await client.post("/api/customer/projects", json={"name": "  Website   Redesign "}, headers=headers)
    assert r.status_code == 201, r.text
    assert (r.json()["name"], r.json()["code"]) == ("Website Redesign", "WR")

    r = await client.post("/api/customer/projects", json={"name": "Winter Retail"}, headers=headers)
    assert r.json()["code"] == "WR2"

    r = await client.post("/api/customer/projects", json={"name": "Web", "code": "wr"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "duplicate"

    r = await client.post("/api/customer/projects", json={"name": "Web", "code": "W-1"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "invalid_project_code"

    r = await client.get("/api/customer/projects", headers=headers)
    assert [p["code"] for p in r.json()] == ["WR", "WR2"]


@pytest.mark.asyncio
async def test_new_project_code_prefixes_its_tickets(client, seed, headers_for):
    company = await seed.company()
    headers = headers_for(await seed.member(company), company)

    project = (await client.post("/api/customer/projects", json={"name": "Logo", "code": "LOGO"}, headers=headers)).json()
    r = await client.post(
        "/api/customer/tickets", json={"title": "Wordmark", "project_id": project["id"]}, headers=headers
    )
    assert r.status_code == 201, r.text
    assert r.json()["code"] == "LOGO-101"

    r = await client.get("/api/customer/projects", headers=headers)
    assert r.json()[0]["ticket_count"] == 1


@pytest.mark.asyncio
async def test_members_read_projects_but_cannot_manage_them(client, seed, headers_for):
    company = await seed.company()
    project = await seed.project(company)
    member = await seed.member(company, CompanyRole.MEMBER)
    headers = headers_for(member, company)

    r = await client.get("/api/customer/projects", headers=headers)
    assert [p["id"] for p in r.json()] == [str(project.id)]

    r = await client.post("/api/customer/projects", json={"name": "Sneaky"}, headers=headers)
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "company_role_forbidden"

    r = await client.delete(f"/api/customer/projects/{project.id}", headers=headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_rename_project(client, seed, headers_for):
    company = await seed.company()
    project = await seed.project(company, code="WEB")
    headers = headers_for(await seed.member(company, CompanyRole.PM), company)

    r = await client.patch(f"/api/customer/projects/{project.id}", json={"name": " Marketing site "}, headers=headers)
    assert r.status_code == 200, r.text
    assert (r.json()["name"], r.json()["code"]) == ("Marketing site", "WEB")

    r = await client.patch(f"/api/customer/projects/{project.id}", json={"name": "M"}, headers=headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_delete_project_keeps_its_tickets(client, db, seed, headers_for):
    company = await seed.company()
    project = await seed.project(company, code="WEB")
    headers = headers_for(await seed.member(company), company)

    r = await client.post(
        "/api/customer/tickets", json={"title": "Hero", "project_id": str(project.id)}, headers=headers
    )
    ticket_id = uuid.UUID(r.json()["id"])

    r = await client.delete(f"/api/customer/projects/{project.id}", headers=headers)
    assert r.status_code == 200, r.text
    assert r.json() == {"status": "ok", "unlinked_tickets": 1}

    ticket = await db.get(Ticket, ticket_id)
    assert ticket is not None
    assert ticket.project_id is None

    r = await client.get(f"/api/customer/tickets/{ticket_id}", headers=headers)
    assert r.json()["code"] == "#101"


@pytest.mark.asyncio
async def test_projects_of_other_companies_are_hidden(client, seed, headers_for):
    mine = await seed.company()
    theirs = await seed.company()
    foreign = await seed.project(theirs)
    headers = headers_for(await seed.member(mine), mine)

    r = await client.patch(f"/api/customer/projects/{foreign.id}", json={"name": "Mine now"}, headers=headers)
    assert r.status_code == 404

    r = await client.get("/api/customer/projects", headers=headers)
    assert r.json() == []
