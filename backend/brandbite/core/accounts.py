# backend/brandbite/core/accounts.py
"""
Admin account management: company plans, platform roles, deactivation.

Only a SITE_OWNER may hand out SITE_OWNER / SITE_ADMIN or touch another
site owner. Nobody changes their own role or deactivates themselves.
"""
from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core import ledger
from brandbite.core.enums import LedgerReason
from brandbite.core.errors import Forbidden, ValidationFailed
from brandbite.core.roles import SITE_ADMIN_ROLES, UserRole
from brandbite.models.company import Company, CompanyMember
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.plan import Plan
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket
from brandbite.models.user import UserAccount

logger = logging.getLogger(__name__)


# -----------------------------
# Plans
# -----------------------------
async def assign_plan(
    db: AsyncSession,
    company: Company,
    plan: Optional[Plan],
    *,
    grant_tokens: bool = False,
) -> Optional[LedgerEntry]:
    """
    Set (or clear) the company's plan. With grant_tokens the plan's monthly
    tokens are credited: PLAN_PURCHASE on a new plan, PLAN_RENEWAL when the
    company already had it. Flushes only.
    """
    if grant_tokens:
        if plan is None:
            raise ValidationFailed("grant_tokens requires a plan", code="plan_required")
        if not plan.is_active:
            raise ValidationFailed("Cannot grant tokens from an inactive plan", code="plan_inactive", plan_id=str(plan.id))

    previous_plan_id = company.plan_id
    company.plan_id = plan.id if plan else None

    entry = None
    if grant_tokens:
        reason = LedgerReason.PLAN_RENEWAL if previous_plan_id == plan.id else LedgerReason.PLAN_PURCHASE
        entry = await ledger.credit(
            db,
            company,
            plan.monthly_tokens,
            reason,
            notes=f"{plan.name} plan",
            metadata={"plan_id": str(plan.id)},
        )
    await db.flush()

    logger.info(
        "plan assigned company=%s plan=%s previous=%s granted=%s",
        company.id,
        company.plan_id,
        previous_plan_id,
        entry.amount if entry else 0,
    )
    return entry


async def company_counts(db: AsyncSession, company_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
    """members / projects / tickets per company."""
    ids = list(company_ids)
    counts = {cid: {"members": 0, "projects": 0, "tickets": 0} for cid in ids}
    if not ids:
        return counts

    for key, column in (
        ("members", CompanyMember.company_id),
        ("projects", Project.company_id),
        ("tickets", Ticket.company_id),
    ):
        stmt = select(column, func.count()).where(column.in_(ids)).group_by(column)
        for cid, n in (await db.execute(stmt)).all():
            counts[cid][key] = int(n)
    return counts


# -----------------------------
# Users
# -----------------------------
def _guard_site_owner(actor: UserAccount, target: UserAccount) -> None:
    if UserRole(target.role) == UserRole.SITE_OWNER and UserRole(actor.role) != UserRole.SITE_OWNER:
        raise Forbidden("Only site owners can modify another site owner.")


async def change_role(db: AsyncSession, *, actor: UserAccount, target: UserAccount, role: UserRole) -> bool:
    """Returns False when the user already has the role."""
    if target.id == actor.id:
        raise ValidationFailed("You cannot change your own role.", code="own_account")
    if role in SITE_ADMIN_ROLES and UserRole(actor.role) != UserRole.SITE_OWNER:
        raise Forbidden("Only site owners can assign admin roles.", role=role.value)
    _guard_site_owner(actor, target)

    previous = UserRole(target.role)
    if previous == role:
        return False

    target.role = role
    await db.flush()
    logger.info("user %s role %s -> %s by=%s", target.id, previous.value, role.value, actor.id)
    return True


async def set_active(db: AsyncSession, *, actor: UserAccount, target: UserAccount, is_active: bool) -> bool:
    """Returns False when nothing changed."""
    if target.id == actor.id and not is_active:
        raise ValidationFailed("You cannot deactivate your own account.", code="own_account")
    _guard_site_owner(actor, target)

    if bool(target.is_active) == is_active:
        return False

    target.is_active = is_active
    await db.flush()
    logger.info("user %s active=%s by=%s", target.id, is_active, actor.id)
    return True


async def user_counts(db: AsyncSession, user_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, dict[str, int]]:
    """Company memberships and assigned tickets per user."""
    ids = list(user_ids)
    counts = {uid: {"companies": 0, "assigned_tickets": 0} for uid in ids}
    if not ids:
        return counts

    for key, column in (
        ("companies", CompanyMember.user_id),
        ("assigned_tickets", Ticket.creative_id),
    ):
        stmt = select(column, func.count()).where(column.in_(ids)).group_by(column)
        for uid, n in (await db.execute(stmt)).all():
            counts[uid][key] = int(n)
    return counts
