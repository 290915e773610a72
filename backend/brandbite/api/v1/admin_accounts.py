# backend/brandbite/api/v1/admin_accounts.py
"""Admin accounts: companies with their plans, and platform users."""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_admin
from brandbite.api.serializers import to_ledger_entry_out
from brandbite.core import accounts
from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.core.roles import UserRole
from brandbite.db.session import get_db
from brandbite.models.company import Company
from brandbite.models.plan import Plan
from brandbite.models.user import UserAccount
from brandbite.schemas.accounts import (
    AdminCompaniesOut,
    AdminCompanyOut,
    AdminUserOut,
    AdminUsersOut,
    AdminUserUpdate,
    CompaniesStatsOut,
    CompanyCountsOut,
    PlanAssignmentOut,
    PlanAssignmentRequest,
    PlanSummaryOut,
)

router = APIRouter(prefix="/admin", tags=["admin"])


def _company_out(company: Company, plan: Optional[Plan], counts: dict[str, int]) -> AdminCompanyOut:
    return AdminCompanyOut(
        id=company.id,
        name=company.name,
        slug=company.slug,
        token_balance=company.token_balance,
        auto_assign_enabled=company.auto_assign_enabled,
        plan=PlanSummaryOut.model_validate(plan) if plan else None,
        counts=CompanyCountsOut(**counts),
        created_at=company.created_at,
    )


def _user_out(user: UserAccount, counts: dict[str, int]) -> AdminUserOut:
    return AdminUserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active,
        is_paused=user.is_paused,
        created_at=user.created_at,
        company_count=counts["companies"],
        assigned_tickets=counts["assigned_tickets"],
    )


# -----------------------------
# Companies
# -----------------------------
@router.get("/companies", response_model=AdminCompaniesOut)
async def list_companies(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    rows = (
        await db.execute(
            select(Company, Plan).outerjoin(Plan, Plan.id == Company.plan_id).order_by(Company.created_at.desc())
        )
    ).all()
    counts = await accounts.company_counts(db, [c.id for c, _plan in rows])

    total_balance = sum(c.token_balance for c, _plan in rows)
    stats = CompaniesStatsOut(
        total_companies=len(rows),
        total_token_balance=total_balance,
        avg_token_balance=round(total_balance / len(rows), 2) if rows else 0.0,
        companies_with_plan=sum(1 for _c, plan in rows if plan is not None),
    )
    return AdminCompaniesOut(
        stats=stats,
        companies=[_company_out(c, plan, counts[c.id]) for c, plan in rows],
    )


@router.patch("/plan-assignment", response_model=PlanAssignmentOut)
async def assign_plan(
    payload: PlanAssignmentRequest,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    """
    Point a company at a plan (plan_id null clears it).
    grant_tokens=true also credits the plan's monthly tokens.
    """
    company = await db.get(Company, payload.company_id)
    if company is None:
        raise NotFound("Company not found", company_id=str(payload.company_id))

    plan = None
    if payload.plan_id is not None:
        plan = await db.get(Plan, payload.plan_id)
        if plan is None:
            raise NotFound("Plan not found", plan_id=str(payload.plan_id))

    entry = await accounts.assign_plan(db, company, plan, grant_tokens=payload.grant_tokens)
    await db.commit()
    await db.refresh(company)

    counts = await accounts.company_counts(db, [company.id])
    return PlanAssignmentOut(
        company=_company_out(company, plan, counts[company.id]),
        ledger_entry=to_ledger_entry_out(entry) if entry else None,
    )


# -----------------------------
# Users
# -----------------------------
@router.get("/users", response_model=AdminUsersOut)
async def list_users(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
    role: Optional[UserRole] = Query(None),
    q: Optional[str] = Query(None, max_length=200),
):
    stmt = select(UserAccount).order_by(UserAccount.created_at.asc())
    if role is not None:
        stmt = stmt.where(UserAccount.role == role)
    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        stmt = stmt.where(or_(func.lower(UserAccount.email).like(like), func.lower(UserAccount.name).like(like)))

    users = (await db.execute(stmt)).scalars().all()
    counts = await accounts.user_counts(db, [u.id for u in users])
    return AdminUsersOut(users=[_user_out(u, counts[u.id]) for u in users])


@router.patch("/users", response_model=AdminUserOut)
async def update_user(
    payload: AdminUserUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """
    Change a user's platform role and/or active flag.
    A role change signs the user out: tokens carry the role they were issued for.
    """
    if payload.role is None and payload.is_active is None:
        raise ValidationFailed("Provide role or is_active")

    target = await db.get(UserAccount, payload.user_id)
    if target is None:
        raise NotFound("User not found", user_id=str(payload.user_id))

    if payload.role is not None:
        await accounts.change_role(db, actor=ctx.user, target=target, role=payload.role)
    if payload.is_active is not None:
        await accounts.set_active(db, actor=ctx.user, target=target, is_active=payload.is_active)

    await db.commit()
    await db.refresh(target)

    counts = await accounts.user_counts(db, [target.id])
    return _user_out(target, counts[target.id])
