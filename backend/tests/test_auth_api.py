from __future__ import annotations

import time

import pytest
from jose import jwt

from brandbite.core.config import settings
from brandbite.core.roles import CompanyRole, UserRole
from brandbite.core.security import create_access_token, decode_access_token


@pytest.mark.asyncio
async def test_magic_code_login_creates_customer(client):
    r = await client.post("/api/auth/request-code", json={"email": "New.Person@Example.com"})
    assert r.status_code == 200, r.text
    code = r.json()["code"]

    r = await client.post("/api/auth/verify-code", json={"email": "new.person@example.com", "code": "000000"})
    assert r.status_code == 401

    r = await client.post("/api/auth/verify-code", json={"email": "new.person@example.com", "code": code})
    assert r.status_code == 200, r.text
    token = r.json()["access_token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200, me.text
    assert me.json()["email"] == "new.person@example.com"
    assert me.json()["role"] == "CUSTOMER"
    assert me.json()["memberships"] == []

    # codes are single use
    r = await client.post("/api/auth/verify-code", json={"email": "new.person@example.com", "code": code})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_resolves_active_company(client, seed, headers_for):
    first = await seed.company()
    second = await seed.company()
    user = await seed.member(first, CompanyRole.PM)
    await seed.membership(second, user, CompanyRole.BILLING)

    r = await client.get("/api/auth/me", headers=headers_for(user))
    assert r.json()["active_company_id"] == str(first.id)
    assert r.json()["company_role"] == "PM"
    assert len(r.json()["memberships"]) == 2

    r = await client.get("/api/auth/me", headers=headers_for(user, second))
    assert r.json()["active_company_id"] == str(second.id)
    assert r.json()["company_role"] == "BILLING"


@pytest.mark.asyncio
async def test_company_header_must_be_a_membership(client, seed, headers_for):
    mine = await seed.company()
    theirs = await seed.company()
    user = await seed.member(mine)

    r = await client.get("/api/customer/settings", headers=headers_for(user, theirs))
    assert r.status_code == 403

    headers = headers_for(user)
    headers["X-Company-Id"] = "not-a-uuid"
    r = await client.get("/api/customer/settings", headers=headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_bad_tokens_are_rejected(client):
    r = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401

    r = await client.get("/api/auth/me")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_customer_without_company(client, seed, headers_for):
    loner = await seed.user()
    r = await client.get("/api/customer/settings", headers=headers_for(loner))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_token_carries_role_and_goes_stale_on_role_change(client, db, seed, headers_for):
    user = await seed.user()
    token = create_access_token(subject=str(user.id), role=user.role)

    claims = decode_access_token(token)
    assert claims.user_id == user.id
    assert claims.role == "CUSTOMER"

    user.role = UserRole.DESIGNER
    await db.commit()

    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Role changed, sign in again"

    r = await client.get("/api/auth/me", headers=headers_for(user))
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "DESIGNER"


@pytest.mark.asyncio
async def test_token_without_role_is_rejected(client, seed):
    user = await seed.user()
    legacy = jwt.encode(
        {"sub": str(user.id), "exp": int(time.time()) + 60},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    r = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {legacy}"})
    assert r.status_code == 401
