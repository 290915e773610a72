# backend/brandbite/api/v1/customer.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_company_permission, require_customer
from brandbite.api.serializers import ticket_out, tickets_out, to_ledger_entry_out
from brandbite.auth.permissions import PERM
from brandbite.core import board, projects as project_service, tickets as ticket_service
from brandbite.core.enums import STATUS_ORDER, LedgerOwnerType, TicketStatus
from brandbite.core.errors import NotFound
from brandbite.db.session import get_db
from brandbite.models.company import CompanyMember
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.plan import Plan
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket, TicketComment, TicketRevision
from brandbite.models.user import UserAccount
from brandbite.schemas.ledger import CompanyTokensOut
from brandbite.schemas.projects import ProjectCreate, ProjectDeleteOut, ProjectOut, ProjectUpdate
from brandbite.schemas.settings import CustomerSettingsOut, MemberOut, MembersOut
from brandbite.schemas.tickets import (
    BoardColumnOut,
    BoardOut,
    CommentCreate,
    CommentOut,
    RevisionOut,
    StatusChangeOut,
    TicketCreate,
    TicketOut,
    TicketPageOut,
    TicketStatusUpdate,
)

router = APIRouter(prefix="/customer", tags=["customer"])


async def _company_ticket(db: AsyncSession, ctx: SessionContext, ticket_id: uuid.UUID) -> Ticket:
    ticket = await db.get(Ticket, ticket_id)
    if ticket is None or ticket.company_id != ctx.company.id:
        raise NotFound("Ticket not found for this company", ticket_id=str(ticket_id))
    return ticket


@router.get("/settings", response_model=CustomerSettingsOut)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_customer),
):
    company = ctx.company
    plan = await db.get(Plan, company.plan_id) if company.plan_id else None
    return CustomerSettingsOut(
        user_id=ctx.user.id,
        email=ctx.user.email,
        name=ctx.user.name,
        company_id=company.id,
        company_name=company.name,
        company_slug=company.slug,
        company_role=ctx.company_role,
        auto_assign_enabled=company.auto_assign_enabled,
        plan_name=plan.name if plan else None,
        monthly_tokens=plan.monthly_tokens if plan else None,
        token_balance=company.token_balance,
    )


@router.get("/tokens", response_model=CompanyTokensOut)
async def get_tokens(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_customer),
    limit: int = Query(50, ge=1, le=200),
):
    """
    Company balance plus its most recent ledger movements.
    """
    company = ctx.company
    plan = await db.get(Plan, company.plan_id) if company.plan_id else None

    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.owner_type == LedgerOwnerType.COMPANY, LedgerEntry.company_id == company.id)
        .order_by(LedgerEntry.created_at.desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()

    return CompanyTokensOut(
        company_id=company.id,
        token_balance=company.token_balance,
        plan_name=plan.name if plan else None,
        monthly_tokens=plan.monthly_tokens if plan else None,
        entries=[to_ledger_entry_out(e) for e in rows],
    )


@router.get("/board", response_model=BoardOut)
async def get_board(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_READ)),
):
    stmt = (
        select(Ticket)
        .where(Ticket.company_id == ctx.company.id)
        .order_by(Ticket.company_ticket_number.asc())
    )
    rows = (await db.execute(stmt)).scalars().all()
    items = await tickets_out(db, rows)

    columns = [BoardColumnOut(status=s, tickets=[t for t in items if t.status == s]) for s in STATUS_ORDER]
    return BoardOut(
        company_id=ctx.company.id,
        columns=columns,
        counts={c.status.value: len(c.tickets) for c in columns},
    )


@router.get("/members", response_model=MembersOut)
async def list_members(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.MEMBERS_READ)),
):
    stmt = (
        select(CompanyMember, UserAccount)
        .join(UserAccount, UserAccount.id == CompanyMember.user_id)
        .where(CompanyMember.company_id == ctx.company.id)
        .order_by(CompanyMember.created_at.asc())
    )
    members = [
        MemberOut(
            id=m.id,
            user_id=u.id,
            email=u.email,
            name=u.name,
            company_role=m.company_role,
            created_at=m.created_at,
        )
        for m, u in (await db.execute(stmt)).all()
    ]
    return MembersOut(company_id=ctx.company.id, members=members)


@router.get("/tickets", response_model=TicketPageOut)
async def list_tickets(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_READ)),
    status_filter: TicketStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    where = [Ticket.company_id == ctx.company.id]
    if status_filter is not None:
        where.append(Ticket.status == status_filter)

    total = (await db.execute(select(func.count()).select_from(Ticket).where(*where))).scalar_one()

    stmt = select(Ticket).where(*where).order_by(Ticket.created_at.desc()).limit(limit).offset(offset)
    rows = (await db.execute(stmt)).scalars().all()

    return TicketPageOut(items=await tickets_out(db, rows), limit=limit, offset=offset, total=int(total))


@router.post("/tickets", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: TicketCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.TICKETS_CREATE)),
):
    """
    Create a job request. Debits the company token_cost * quantity.
    """
    ticket = await ticket_service.create_ticket(
        db,
        company=ctx.company,
        created_by=ctx.user,
        title=payload.title,
        description=payload.description,
        project_id=payload.project_id,
        job_type_id=payload.job_type_id,
        priority=payload.priority,
        quantity=payload.quantity,
        due_date=payload.due_date,
    )
    await db.commit()
    return await ticket_out(db, ticket)


@router.patch("/tickets/status", response_model=StatusChangeOut)
async def update_ticket_status(
    payload: TicketStatusUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_MOVE)),
):
    """
    Customer board move: approve (IN_REVIEW -> DONE, OWNER/PM only) or
    request changes (IN_REVIEW -> IN_PROGRESS).
    """
    ticket = await _company_ticket(db, ctx, payload.ticket_id)
    actor = board.BoardActor(kind=board.ActorKind.CUSTOMER, company_role=ctx.company_role)

    result = await board.apply_status_change(
        db, ticket, payload.status, actor=actor, user=ctx.user, message=payload.message
    )
    await db.commit()

    return StatusChangeOut(
        ticket=await ticket_out(db, result.ticket),
        previous_status=result.previous_status,
        changed=result.changed,
        revision_version=result.revision.version if result.revision else None,
        payout_tokens=result.payout_entry.amount if result.payout_entry else None,
        allowed_next=sorted(board.next_allowed_states(actor, result.ticket.status), key=STATUS_ORDER.index),
    )


@router.get("/tickets/{ticket_id}", response_model=TicketOut)
async def get_ticket(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_READ)),
):
    ticket = await _company_ticket(db, ctx, ticket_id)
    return await ticket_out(db, ticket)


@router.get("/tickets/{ticket_id}/revisions", response_model=list[RevisionOut])
async def list_revisions(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_READ)),
):
    ticket = await _company_ticket(db, ctx, ticket_id)
    stmt = select(TicketRevision).where(TicketRevision.ticket_id == ticket.id).order_by(TicketRevision.version.asc())
    return (await db.execute(stmt)).scalars().all()


@router.get("/tickets/{ticket_id}/comments", response_model=list[CommentOut])
async def list_comments(
    ticket_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.BOARD_READ)),
):
    ticket = await _company_ticket(db, ctx, ticket_id)
    stmt = select(TicketComment).where(TicketComment.ticket_id == ticket.id).order_by(TicketComment.created_at.asc())
    return (await db.execute(stmt)).scalars().all()


@router.post("/tickets/{ticket_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    ticket_id: uuid.UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.TICKETS_COMMENT)),
):
    ticket = await _company_ticket(db, ctx, ticket_id)
    comment = TicketComment(ticket_id=ticket.id, author_id=ctx.user.id, body=payload.body.strip())
    db.add(comment)
    await db.commit()
    return comment


# -----------------------------
# Projects
# -----------------------------
@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.PROJECTS_READ)),
):
    stmt = select(Project).where(Project.company_id == ctx.company.id).order_by(Project.name.asc())
    rows = (await db.execute(stmt)).scalars().all()
    counts = await project_service.ticket_counts(db, ctx.company.id)
    return [
        ProjectOut(id=p.id, name=p.name, code=p.code, ticket_count=counts.get(p.id, 0), created_at=p.created_at)
        for p in rows
    ]


@router.post("/projects", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.PROJECTS_MANAGE)),
):
    """
    OWNER / PM only. The code prefixes ticket codes (WEB -> WEB-101).
    """
    project = await project_service.create_project(db, ctx.company, payload.name, payload.code)
    await db.commit()
    return ProjectOut.model_validate(project)


@router.patch("/projects/{project_id}", response_model=ProjectOut)
async def rename_project(
    project_id: uuid.UUID,
    payload: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.PROJECTS_MANAGE)),
):
    project = await project_service.get_company_project(db, ctx.company.id, project_id)
    project.name = project_service.normalize_project_name(payload.name)
    await db.commit()

    counts = await project_service.ticket_counts(db, ctx.company.id)
    out = ProjectOut.model_validate(project)
    out.ticket_count = counts.get(project.id, 0)
    return out


@router.delete("/projects/{project_id}", response_model=ProjectDeleteOut)
async def delete_project(
    project_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(require_company_permission(PERM.PROJECTS_MANAGE)),
):
    """
    Tickets survive; they lose their project and fall back to #n codes.
    """
    project = await project_service.get_company_project(db, ctx.company.id, project_id)
    unlinked = await project_service.delete_project(db, project)
    await db.commit()
    return ProjectDeleteOut(unlinked_tickets=unlinked)
