# brandbite/core/tickets.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core import ledger
from brandbite.core.availability import is_creative_paused
from brandbite.core.config import settings
from brandbite.core.enums import LedgerReason, TicketPriority, TicketStatus
from brandbite.core.errors import InsufficientBalance, NotFound, ValidationFailed
from brandbite.core.load_score import load_scores_for
from brandbite.core.roles import UserRole
from brandbite.models.company import Company
from brandbite.models.job_type import JobType
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket
from brandbite.models.user import UserAccount

logger = logging.getLogger(__name__)

MAX_QUANTITY = 10


async def next_company_ticket_number(db: AsyncSession, company_id: uuid.UUID) -> int:
    """max + 1 within the company; the first ticket gets FIRST_COMPANY_TICKET_NUMBER + 1."""
    stmt = select(func.max(Ticket.company_ticket_number)).where(Ticket.company_id == company_id)
    current = (await db.execute(stmt)).scalar()
    if current is None:
        return settings.FIRST_COMPANY_TICKET_NUMBER + 1
    return int(current) + 1


async def pick_auto_assignee(db: AsyncSession) -> Optional[UserAccount]:
    """Least-loaded active, unpaused creative; ties go to the oldest account."""
    stmt = (
        select(UserAccount)
        .where(UserAccount.role == UserRole.DESIGNER, UserAccount.is_active.is_(True))
        .order_by(UserAccount.created_at.asc(), UserAccount.id.asc())
    )
    creatives = [c for c in (await db.execute(stmt)).scalars().all() if not is_creative_paused(c)]
    if not creatives:
        return None

    scores = await load_scores_for(db, [c.id for c in creatives])
    # min() keeps the first of equal scores, i.e. creation order
    return min(creatives, key=lambda c: scores[c.id])


async def create_ticket(
    db: AsyncSession,
    *,
    company: Company,
    created_by: UserAccount,
    title: str,
    description: Optional[str] = None,
    project_id: Optional[uuid.UUID] = None,
    job_type_id: Optional[uuid.UUID] = None,
    priority: TicketPriority = TicketPriority.MEDIUM,
    quantity: int = 1,
    due_date: Optional[datetime] = None,
) -> Ticket:
    """
    Customer intake. Reserves the next company number, auto-assigns, creates the
    TODO ticket and debits the company for token_cost * quantity. Flushes only.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationFailed("title is required")
    if not 1 <= quantity <= MAX_QUANTITY:
        raise ValidationFailed(f"quantity must be between 1 and {MAX_QUANTITY}")

    if project_id is not None:
        project = await db.get(Project, project_id)
        if project is None or project.company_id != company.id:
            raise NotFound("Project not found for this company", project_id=str(project_id))

    cost = 0
    if job_type_id is not None:
        job_type = await db.get(JobType, job_type_id)
        if job_type is None or not job_type.is_active:
            raise NotFound("Job type not found", job_type_id=str(job_type_id))
        cost = int(job_type.token_cost) * quantity

    # company row lock also serializes ticket numbering
    company = await ledger.lock_owner(db, company)
    if cost > ledger.balance_of(company):
        raise InsufficientBalance(
            "Not enough tokens for this request",
            balance=ledger.balance_of(company),
            required=cost,
        )

    creative_id = None
    if company.auto_assign_enabled:
        creative = await pick_auto_assignee(db)
        creative_id = creative.id if creative else None

    ticket = Ticket(
        company_id=company.id,
        project_id=project_id,
        job_type_id=job_type_id,
        creative_id=creative_id,
        created_by_id=created_by.id,
        title=title,
        description=description,
        status=TicketStatus.TODO,
        priority=priority,
        quantity=quantity,
        due_date=due_date,
        company_ticket_number=await next_company_ticket_number(db, company.id),
    )
    db.add(ticket)
    await db.flush()

    if cost > 0:
        await ledger.debit(
            db,
            company,
            cost,
            LedgerReason.JOB_REQUEST_CREATED,
            ticket_id=ticket.id,
            notes=f"Job request #{ticket.company_ticket_number}",
            metadata={"job_type_id": str(job_type_id), "quantity": quantity},
        )

    logger.info(
        "ticket %s created company=%s number=%s creative=%s cost=%s",
        ticket.id,
        company.id,
        ticket.company_ticket_number,
        creative_id,
        cost,
    )
    return ticket
