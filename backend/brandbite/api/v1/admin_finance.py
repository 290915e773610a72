# backend/brandbite/api/v1/admin_finance.py
"""Admin money side: ledger, withdrawals, payout tiers and app settings."""
from __future__ import annotations

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_admin
from brandbite.api.serializers import to_ledger_entry_out
from brandbite.api.updates import patch_fields
from brandbite.core import app_settings, ledger, withdrawals as withdrawal_service
from brandbite.core.enums import LedgerDirection, LedgerOwnerType, WithdrawalStatus
from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.core.payout_tiers import validate_payout_percent
from brandbite.db.session import get_db
from brandbite.models.company import Company
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.payout_tier import PayoutTier
from brandbite.models.user import UserAccount
from brandbite.models.withdrawal import Withdrawal
from brandbite.schemas.ledger import LedgerAdjustmentCreate, LedgerEntryOut, LedgerPageOut
from brandbite.schemas.payout_tiers import PayoutTierCreate, PayoutTierOut, PayoutTierUpdate
from brandbite.schemas.settings import AppSettingsOut, AppSettingsUpdate
from brandbite.schemas.withdrawals import AdminWithdrawalOut, AdminWithdrawalPageOut, WithdrawalActionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# -----------------------------
# Ledger
# -----------------------------
@router.get("/ledger", response_model=LedgerPageOut)
async def list_ledger(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
    owner_type: Optional[LedgerOwnerType] = Query(None),
    company_id: Optional[uuid.UUID] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    ticket_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """
    Immutable token ledger, newest first.
    Pagination:
      - limit (1..200)
      - offset (>=0)
    """
    where = []
    if owner_type is not None:
        where.append(LedgerEntry.owner_type == owner_type)
    if company_id is not None:
        where.append(LedgerEntry.company_id == company_id)
    if user_id is not None:
        where.append(LedgerEntry.user_id == user_id)
    if ticket_id is not None:
        where.append(LedgerEntry.ticket_id == ticket_id)

    total = (await db.execute(select(func.count()).select_from(LedgerEntry).where(*where))).scalar_one()

    stmt = (
        select(LedgerEntry)
        .where(*where)
        .order_by(LedgerEntry.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = (await db.execute(stmt)).scalars().all()

    return LedgerPageOut(
        items=[to_ledger_entry_out(e) for e in rows],
        limit=limit,
        offset=offset,
        total=int(total),
    )


@router.post("/ledger/adjustments", response_model=LedgerEntryOut, status_code=status.HTTP_201_CREATED)
async def create_adjustment(
    payload: LedgerAdjustmentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """
    Manual correction: an offsetting CREDIT/DEBIT, never an edit.
    """
    if payload.company_id is not None:
        owner = await db.get(Company, payload.company_id)
        if owner is None:
            raise NotFound("Company not found", company_id=str(payload.company_id))
    else:
        owner = await db.get(UserAccount, payload.user_id)
        if owner is None:
            raise NotFound("User not found", user_id=str(payload.user_id))

    move = ledger.credit if payload.direction == LedgerDirection.CREDIT else ledger.debit
    entry = await move(
        db,
        owner,
        payload.amount,
        payload.reason,
        notes=payload.notes,
        metadata={"admin_id": str(ctx.user.id)},
    )
    await db.commit()
    return to_ledger_entry_out(entry)


# -----------------------------
# Withdrawals
# -----------------------------
@router.get("/withdrawals", response_model=AdminWithdrawalPageOut)
async def list_withdrawals(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
    status_filter: Optional[WithdrawalStatus] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    where = []
    if status_filter is not None:
        where.append(Withdrawal.status == status_filter)

    total = (await db.execute(select(func.count()).select_from(Withdrawal).where(*where))).scalar_one()

    stmt = (
        select(Withdrawal, UserAccount)
        .join(UserAccount, UserAccount.id == Withdrawal.creative_id)
        .where(*where)
        .order_by(Withdrawal.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    items = []
    for w, u in (await db.execute(stmt)).all():
        out = AdminWithdrawalOut.model_validate(w)
        out.creative_email = u.email
        out.creative_name = u.name
        items.append(out)

    return AdminWithdrawalPageOut(items=items, limit=limit, offset=offset, total=int(total))


@router.patch("/withdrawals", response_model=AdminWithdrawalOut)
async def act_on_withdrawal(
    payload: WithdrawalActionRequest,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """
    Body: {"id": "...", "action": "APPROVE" | "REJECT" | "MARK_PAID", "reason": "..."}
    """
    withdrawal = await withdrawal_service.apply_action(db, payload.id, payload.action, reason=payload.reason)
    await db.commit()
    logger.info("withdrawal %s %s by admin=%s", withdrawal.id, payload.action.value, ctx.user.id)
    return AdminWithdrawalOut.model_validate(withdrawal)


# -----------------------------
# Payout tiers
# -----------------------------
@router.get("/payout-tiers", response_model=list[PayoutTierOut])
async def list_payout_tiers(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    stmt = select(PayoutTier).order_by(PayoutTier.payout_percent.asc(), PayoutTier.created_at.asc())
    return (await db.execute(stmt)).scalars().all()


@router.post("/payout-tiers", response_model=PayoutTierOut, status_code=status.HTTP_201_CREATED)
async def create_payout_tier(
    payload: PayoutTierCreate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    validate_payout_percent(payload.payout_percent)
    tier = PayoutTier(**payload.model_dump())
    tier.name = tier.name.strip()
    db.add(tier)
    await db.commit()
    return tier


@router.patch("/payout-tiers", response_model=PayoutTierOut)
async def update_payout_tier(
    payload: PayoutTierUpdate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    tier = await db.get(PayoutTier, payload.id)
    if tier is None:
        raise NotFound("Payout tier not found", tier_id=str(payload.id))

    data = patch_fields(payload, nullable={"description"})
    if "payout_percent" in data:
        validate_payout_percent(data["payout_percent"])
    if "name" in data:
        data["name"] = data["name"].strip()
    for key, value in data.items():
        setattr(tier, key, value)

    await db.commit()
    return tier


# -----------------------------
# App settings
# -----------------------------
@router.get("/settings", response_model=AppSettingsOut)
async def get_app_settings(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    return AppSettingsOut(settings=await app_settings.all_settings(db))


@router.patch("/settings", response_model=AppSettingsOut)
async def update_app_settings(
    payload: AppSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise ValidationFailed("No fields provided to update.")

    if "min_withdrawal_tokens" in data:
        await app_settings.set_app_setting(db, app_settings.MIN_WITHDRAWAL_TOKENS, str(data["min_withdrawal_tokens"]))

    await db.commit()
    logger.info("app settings updated by admin=%s keys=%s", ctx.user.id, sorted(data))
    return AppSettingsOut(settings=await app_settings.all_settings(db))
