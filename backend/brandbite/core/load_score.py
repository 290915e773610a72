# brandbite/core/load_score.py
from __future__ import annotations

import uuid
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.enums import TicketPriority, TicketStatus
from brandbite.models.job_type import JobType
from brandbite.models.ticket import Ticket

PRIORITY_WEIGHTS: dict[TicketPriority, int] = {
    TicketPriority.LOW: 1,
    TicketPriority.MEDIUM: 2,
    TicketPriority.HIGH: 3,
    TicketPriority.URGENT: 4,
}

HIGH_LOAD_THRESHOLD = 80
ELEVATED_LOAD_THRESHOLD = 50


def ticket_load(priority: TicketPriority | str, token_cost: Optional[int], quantity: Optional[int] = 1) -> int:
    try:
        weight = PRIORITY_WEIGHTS[TicketPriority(priority)]
    except ValueError:
        weight = PRIORITY_WEIGHTS[TicketPriority.MEDIUM]
    cost = token_cost if token_cost is not None else 1
    return weight * cost * max(1, quantity or 1)


def compute_load_score(rows: Iterable[tuple[TicketStatus | str, TicketPriority | str, Optional[int], Optional[int]]]) -> int:
    """rows: (status, priority, token_cost, quantity); DONE tickets carry no load."""
    score = 0
    for status, priority, token_cost, quantity in rows:
        if TicketStatus(status) == TicketStatus.DONE:
            continue
        score += ticket_load(priority, token_cost, quantity)
    return score


def load_band(score: int) -> str:
    if score >= HIGH_LOAD_THRESHOLD:
        return "high"
    if score >= ELEVATED_LOAD_THRESHOLD:
        return "elevated"
    return "normal"


async def load_scores_for(db: AsyncSession, creative_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, int]:
    ids = list(creative_ids)
    scores: dict[uuid.UUID, int] = {cid: 0 for cid in ids}
    if not ids:
        return scores

    stmt = (
        select(Ticket.creative_id, Ticket.status, Ticket.priority, JobType.token_cost, Ticket.quantity)
        .outerjoin(JobType, JobType.id == Ticket.job_type_id)
        .where(Ticket.creative_id.in_(ids), Ticket.status != TicketStatus.DONE)
    )
    for creative_id, status, priority, token_cost, quantity in (await db.execute(stmt)).all():
        scores[creative_id] += compute_load_score([(status, priority, token_cost, quantity)])
    return scores


async def load_score_for(db: AsyncSession, creative_id: uuid.UUID) -> int:
    return (await load_scores_for(db, [creative_id]))[creative_id]
