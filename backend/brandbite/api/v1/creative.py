# backend/brandbite/api/v1/creative.py
from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_creative
from brandbite.api.serializers import ticket_out, tickets_out, to_ledger_entry_out
from brandbite.core import availability, board, ledger, withdrawals as withdrawal_service
from brandbite.core.app_settings import min_withdrawal_tokens
from brandbite.core.config import settings
from brandbite.core.enums import STATUS_ORDER, LedgerDirection, LedgerOwnerType, TicketStatus, WithdrawalStatus
from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.core.load_score import load_band, load_score_for
from brandbite.core.payout_tiers import evaluate_payout
from brandbite.db.session import get_db
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.ticket import Ticket, TicketComment, TicketRevision
from brandbite.models.withdrawal import Withdrawal
from brandbite.schemas.ledger import CreativeBalanceOut
from brandbite.schemas.payout_tiers import CreativePayoutTierOut, TierProgressOut
from brandbite.schemas.settings import AvailabilityOut, AvailabilityUpdate
from brandbite.schemas.tickets import CommentCreate, CommentOut, RevisionOut, StatusChangeOut, TicketOut, TicketStatusUpdate
from brandbite.schemas.withdrawals import CreativeWithdrawalsOut, WithdrawalCreate, WithdrawalOut, WithdrawalStatsOut

router = APIRouter(prefix="/creative", tags=["creative"])

CREATIVE_ACTOR = board.BoardActor(kind=board.ActorKind.CREATIVE)


class CreativeTicketsOut(BaseModel):
    load_score: int
    load_band: str
    tickets: List[TicketOut]


async def _assigned_ticket(db: AsyncSession, ctx: SessionContext, ticket_id: uuid.UUID) -> Ticket:
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None or ticket.creative_id != ctx.user.id:
        raise NotFound("Ticket not found for this creative", ticket_id=str(ticket_id))
    return ticket


@router.get("/balance", response_model=CreativeBalanceOut)
async def get_balance(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
    limit: int = Query(50, ge=1, le=200),
):
    creative = ctx.user
    owner_filter = (LedgerEntry.owner_type == LedgerOwnerType.USER, LedgerEntry.user_id == creative.id)

    totals_stmt = select(
        func.coalesce(func.sum(case((LedgerEntry.direction == LedgerDirection.CREDIT, LedgerEntry.amount), else_=0)), 0),
        func.coalesce(func.sum(case((LedgerEntry.direction == LedgerDirection.DEBIT, LedgerEntry.amount), else_=0)), 0),
    ).where(*owner_filter)
    total_earned, total_withdrawn = (await db.execute(totals_stmt)).one()

    rows = (
        await db.execute(
            select(LedgerEntry).where(*owner_filter).order_by(LedgerEntry.created_at.desc()).limit(limit)
        )
    ).scalars().all()

    reserved = await withdrawal_service.reserved_tokens(db, creative.id)
    balance = ledger.balance_of(creative)

    return CreativeBalanceOut(
        creative_id=creative.id,
        balance=balance,
        available_balance=balance - reserved,
        reserved_tokens=reserved,
        total_earned=int(total_earned or 0),
        total_withdrawn=int(total_withdrawn or 0),
        entries=[to_ledger_entry_out(e) for e in rows],
    )


@router.get("/tickets", response_model=CreativeTicketsOut)
async def list_tickets(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
    status_filter: TicketStatus | None = Query(None, alias="status"),
):
    where = [Ticket.creative_id == ctx.user.id]
    if status_filter is not None:
        where.append(Ticket.status == status_filter)

    stmt = select(Ticket).where(*where).order_by(Ticket.due_date.asc().nulls_last(), Ticket.created_at.asc())
    rows = (await db.execute(stmt)).scalars().all()

    score = await load_score_for(db, ctx.user.id)
    return CreativeTicketsOut(load_score=score, load_band=load_band(score), tickets=await tickets_out(db, rows))


@router.patch("/tickets", response_model=StatusChangeOut)
async def update_ticket_status(
    payload: TicketStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    """
    Creative board move. TODO -> IN_PROGRESS -> IN_REVIEW (opens a revision),
    IN_REVIEW -> IN_PROGRESS. DONE is never reachable from here.
    """
    ticket = await _assigned_ticket(db, ctx, payload.ticket_id)
    result = await board.apply_status_change(
        db, ticket, payload.status, actor=CREATIVE_ACTOR, user=ctx.user, message=payload.message
    )
    await db.commit()

    return StatusChangeOut(
        ticket=await ticket_out(db, result.ticket),
        previous_status=result.previous_status,
        changed=result.changed,
        revision_version=result.revision.version if result.revision else None,
        allowed_next=sorted(board.next_allowed_states(CREATIVE_ACTOR, result.ticket.status), key=STATUS_ORDER.index),
    )


@router.get("/tickets/{ticket_id}", response_model=TicketOut)
async def get_ticket(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    return await ticket_out(db, await _assigned_ticket(db, ctx, ticket_id))


@router.get("/tickets/{ticket_id}/revisions", response_model=list[RevisionOut])
async def list_revisions(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    ticket = await _assigned_ticket(db, ctx, ticket_id)
    stmt = select(TicketRevision).where(TicketRevision.ticket_id == ticket.id).order_by(TicketRevision.version.asc())
    return (await db.execute(stmt)).scalars().all()


@router.get("/tickets/{ticket_id}/comments", response_model=list[CommentOut])
async def list_comments(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    ticket = await _assigned_ticket(db, ctx, ticket_id)
    stmt = select(TicketComment).where(TicketComment.ticket_id == ticket.id).order_by(TicketComment.created_at.asc())
    return (await db.execute(stmt)).scalars().all()


@router.post("/tickets/{ticket_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: uuid.UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    ticket = await _assigned_ticket(db, ctx, ticket_id)
    comment = TicketComment(ticket_id=ticket.id, author_id=ctx.user.id, body=payload.body.strip())
    db.add(comment)
    await db.commit()
    return comment


@router.get("/withdrawals", response_model=CreativeWithdrawalsOut)
async def list_withdrawals(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    stmt = select(Withdrawal).where(Withdrawal.creative_id == ctx.user.id).order_by(Withdrawal.created_at.desc())
    rows = (await db.execute(stmt)).scalars().all()

    return CreativeWithdrawalsOut(
        stats=WithdrawalStatsOut(
            available_balance=await withdrawal_service.available_balance(db, ctx.user),
            total_requested=sum(w.amount_tokens for w in rows),
            pending_count=sum(1 for w in rows if w.status == WithdrawalStatus.PENDING),
            withdrawals_count=len(rows),
            min_withdrawal_tokens=await min_withdrawal_tokens(db),
        ),
        withdrawals=[WithdrawalOut.model_validate(w) for w in rows],
    )


@router.post("/withdrawals", response_model=WithdrawalOut, status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    payload: WithdrawalCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    withdrawal = await withdrawal_service.create_withdrawal(db, ctx.user, payload.amount_tokens, notes=payload.notes)
    await db.commit()
    return withdrawal


@router.get("/payout-tier", response_model=CreativePayoutTierOut)
async def get_payout_tier(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    """
    Current payout percent plus progress toward every active tier.
    """
    evaluation = await evaluate_payout(db, ctx.user.id)
    return CreativePayoutTierOut(
        current_payout_percent=evaluation.payout_percent,
        current_tier_name=evaluation.matched_tier_name,
        base_payout_percent=settings.BASE_PAYOUT_PERCENT,
        tiers=[
            TierProgressOut(
                id=p.tier.id,
                name=p.tier.name,
                description=p.tier.description,
                min_completed_tickets=p.tier.min_completed_tickets,
                time_window_days=p.tier.time_window_days,
                payout_percent=p.tier.payout_percent,
                completed_in_window=p.completed_in_window,
                qualified=p.qualified,
            )
            for p in evaluation.progress
        ],
    )


@router.get("/availability", response_model=AvailabilityOut)
async def get_availability(ctx: SessionContext = Depends(require_creative)):
    return AvailabilityOut(**availability.pause_status(ctx.user))


@router.patch("/availability", response_model=AvailabilityOut)
async def update_availability(
    payload: AvailabilityUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_creative),
):
    creative = ctx.user
    if payload.is_paused:
        if not availability.is_valid_pause_type(payload.pause_type):
            raise ValidationFailed(
                "pause_type must be one of: " + ", ".join(availability.PAUSE_DURATIONS),
                code="invalid_pause_type",
            )
        availability.apply_pause(creative, payload.pause_type)
    else:
        availability.clear_pause(creative)

    await db.commit()
    return AvailabilityOut(**availability.pause_status(creative))
