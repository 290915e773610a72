# backend/brandbite/api/v1/admin_board.py
from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_admin
from brandbite.api.serializers import ticket_out, tickets_out
from brandbite.core import board
from brandbite.core.availability import is_creative_paused
from brandbite.core.enums import STATUS_ORDER, LedgerDirection, LedgerOwnerType, TicketStatus, WithdrawalStatus
from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.core.load_score import load_band, load_scores_for
from brandbite.core.roles import UserRole
from brandbite.db.session import get_db
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.ticket import Ticket, TicketRevision
from brandbite.models.user import UserAccount
from brandbite.models.withdrawal import Withdrawal
from brandbite.schemas.analytics import AnalyticsSummaryOut, CreativeAnalyticsOut, CreativeMetricsOut
from brandbite.schemas.tickets import AdminTicketUpdate, StatusChangeOut, TicketPageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

ADMIN_ACTOR = board.BoardActor(kind=board.ActorKind.ADMIN)


def _round1(value: float) -> float:
    return round(value * 10) / 10


@router.get("/tickets", response_model=TicketPageOut)
async def list_tickets(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    company_id: Optional[uuid.UUID] = Query(None),
    creative_id: Optional[uuid.UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    where = []
    if status_filter is not None:
        where.append(Ticket.status == status_filter)
    if company_id is not None:
        where.append(Ticket.company_id == company_id)
    if creative_id is not None:
        where.append(Ticket.creative_id == creative_id)

    total = (await db.execute(select(func.count()).select_from(Ticket).where(*where))).scalar_one()
    stmt = select(Ticket).where(*where).order_by(Ticket.created_at.desc()).limit(limit).offset(offset)
    rows = (await db.execute(stmt)).scalars().all()

    return TicketPageOut(items=await tickets_out(db, rows), limit=limit, offset=offset, total=int(total))


@router.patch("/tickets", response_model=StatusChangeOut)
async def update_ticket(
    payload: AdminTicketUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_admin),
):
    """
    Admin override: any status move, priority change, (re)assignment.
    Assignment is applied before the status move so a DONE override pays the new creative.
    """
    ticket = await db.get(Ticket, payload.ticket_id)
    if ticket is None:
        raise NotFound("Ticket not found", ticket_id=str(payload.ticket_id))

    if payload.unassign and payload.creative_id is not None:
        raise ValidationFailed("Use either creative_id or unassign, not both")

    if payload.creative_id is not None:
        creative = await db.get(UserAccount, payload.creative_id)
        if creative is None or creative.role != UserRole.DESIGNER:
            raise NotFound("Creative not found", creative_id=str(payload.creative_id))
        ticket.creative_id = creative.id
    elif payload.unassign:
        ticket.creative_id = None

    if payload.priority is not None:
        ticket.priority = payload.priority

    result = None
    if payload.status is not None:
        result = await board.apply_status_change(db, ticket, payload.status, actor=ADMIN_ACTOR, user=ctx.user)
        ticket = result.ticket
    else:
        await db.flush()

    await db.commit()
    logger.info("admin ticket update ticket=%s admin=%s fields=%s", ticket.id, ctx.user.id, sorted(payload.model_dump(exclude_unset=True)))

    return StatusChangeOut(
        ticket=await ticket_out(db, ticket),
        previous_status=result.previous_status if result else ticket.status,
        changed=result.changed if result else False,
        revision_version=result.revision.version if result and result.revision else None,
        payout_tokens=result.payout_entry.amount if result and result.payout_entry else None,
        allowed_next=sorted(board.next_allowed_states(ADMIN_ACTOR, ticket.status), key=STATUS_ORDER.index),
    )


@router.get("/designer-analytics", response_model=CreativeAnalyticsOut)
async def designer_analytics(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    """
    Per-creative performance: completions, revisions, review turnaround,
    current load, earnings and withdrawals.
    """
    creatives = (
        await db.execute(select(UserAccount).where(UserAccount.role == UserRole.DESIGNER).order_by(UserAccount.created_at))
    ).scalars().all()
    ids = [c.id for c in creatives]

    ticket_rows = (
        await db.execute(
            select(Ticket.creative_id, Ticket.status, Ticket.revision_count).where(Ticket.creative_id.in_(ids))
        )
    ).all() if ids else []

    revision_rows = (
        await db.execute(
            select(TicketRevision.submitted_by_id, TicketRevision.submitted_at, TicketRevision.feedback_at).where(
                TicketRevision.submitted_by_id.in_(ids), TicketRevision.feedback_at.is_not(None)
            )
        )
    ).all() if ids else []

    earnings = dict(
        (
            await db.execute(
                select(LedgerEntry.user_id, func.coalesce(func.sum(LedgerEntry.amount), 0))
                .where(
                    LedgerEntry.owner_type == LedgerOwnerType.USER,
                    LedgerEntry.direction == LedgerDirection.CREDIT,
                )
                .group_by(LedgerEntry.user_id)
            )
        ).all()
    )
    withdrawn = dict(
        (
            await db.execute(
                select(
                    Withdrawal.creative_id,
                    func.coalesce(func.sum(case((Withdrawal.status == WithdrawalStatus.PAID, Withdrawal.amount_tokens), else_=0)), 0),
                ).group_by(Withdrawal.creative_id)
            )
        ).all()
    )
    load_scores = await load_scores_for(db, ids)

    tickets_by = defaultdict(list)
    for creative_id, st, revision_count in ticket_rows:
        tickets_by[creative_id].append((TicketStatus(st), int(revision_count or 0)))

    turnaround_by = defaultdict(list)
    for creative_id, submitted_at, feedback_at in revision_rows:
        hours = (feedback_at - submitted_at).total_seconds() / 3600
        if hours >= 0:
            turnaround_by[creative_id].append(hours)

    metrics: list[CreativeMetricsOut] = []
    platform_completed = 0
    platform_revision_sum = 0
    platform_revision_n = 0
    platform_turnaround: list[float] = []

    for c in creatives:
        rows = tickets_by.get(c.id, [])
        done = [rc for st, rc in rows if st == TicketStatus.DONE]
        active = len(rows) - len(done)
        turnaround = turnaround_by.get(c.id, [])
        score = load_scores.get(c.id, 0)

        platform_completed += len(done)
        platform_revision_sum += sum(done)
        platform_revision_n += len(done)
        platform_turnaround.extend(turnaround)

        metrics.append(
            CreativeMetricsOut(
                id=c.id,
                name=c.name,
                email=c.email,
                completed_tickets=len(done),
                active_tickets=active,
                total_tickets=len(rows),
                completion_rate=round(len(done) / len(rows) * 100) if rows else 0,
                avg_revision_count=_round1(sum(done) / len(done)) if done else 0.0,
                avg_turnaround_hours=_round1(sum(turnaround) / len(turnaround)) if turnaround else 0.0,
                load_score=score,
                load_band=load_band(score),
                is_paused=is_creative_paused(c),
                total_earnings=int(earnings.get(c.id, 0) or 0),
                total_withdrawn=int(withdrawn.get(c.id, 0) or 0),
            )
        )

    metrics.sort(key=lambda m: m.completed_tickets, reverse=True)

    return CreativeAnalyticsOut(
        summary=AnalyticsSummaryOut(
            total_creatives=len(creatives),
            total_completed_tickets=platform_completed,
            avg_platform_revision_rate=_round1(platform_revision_sum / platform_revision_n) if platform_revision_n else 0.0,
            avg_platform_turnaround_hours=(
                _round1(sum(platform_turnaround) / len(platform_turnaround)) if platform_turnaround else 0.0
            ),
        ),
        creatives=metrics,
    )
