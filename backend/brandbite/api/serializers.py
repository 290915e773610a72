# brandbite/api/serializers.py
"""ORM -> response model helpers shared by the routers."""
from __future__ import annotations

import uuid
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.ticket_code import build_ticket_code
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket
from brandbite.schemas.ledger import LedgerEntryOut
from brandbite.schemas.tickets import TicketOut


def to_ticket_out(ticket: Ticket, project_code: Optional[str] = None) -> TicketOut:
    return TicketOut(
        id=ticket.id,
        code=build_ticket_code(
            ticket_id=ticket.id,
            company_ticket_number=ticket.company_ticket_number,
            project_code=project_code,
        ),
        company_id=ticket.company_id,
        project_id=ticket.project_id,
        job_type_id=ticket.job_type_id,
        creative_id=ticket.creative_id,
        created_by_id=ticket.created_by_id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        priority=ticket.priority,
        quantity=ticket.quantity,
        due_date=ticket.due_date,
        company_ticket_number=ticket.company_ticket_number,
        revision_count=ticket.revision_count,
        completed_at=ticket.completed_at,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )


async def project_codes(db: AsyncSession, project_ids: Iterable[Optional[uuid.UUID]]) -> dict[uuid.UUID, Optional[str]]:
    ids = {pid for pid in project_ids if pid is not None}
    if not ids:
        return {}
    rows = (await db.execute(select(Project.id, Project.code).where(Project.id.in_(ids)))).all()
    return {pid: code for pid, code in rows}


async def tickets_out(db: AsyncSession, tickets: Sequence[Ticket]) -> list[TicketOut]:
    codes = await project_codes(db, (t.project_id for t in tickets))
    return [to_ticket_out(t, codes.get(t.project_id) if t.project_id else None) for t in tickets]


async def ticket_out(db: AsyncSession, ticket: Ticket) -> TicketOut:
    return (await tickets_out(db, [ticket]))[0]


def to_ledger_entry_out(e: LedgerEntry) -> LedgerEntryOut:
    return LedgerEntryOut(
        id=e.id,
        owner_type=e.owner_type,
        company_id=e.company_id,
        user_id=e.user_id,
        ticket_id=e.ticket_id,
        direction=e.direction,
        amount=e.amount,
        reason=e.reason,
        notes=e.notes,
        balance_before=e.balance_before,
        balance_after=e.balance_after,
        created_at=e.created_at,
        entry_metadata=e.entry_metadata or {},
    )
