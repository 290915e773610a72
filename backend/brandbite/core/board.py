# brandbite/core/board.py
"""
Ticket board state machine.

next_allowed_states() is the single source of truth for who may move a ticket
where. Every status-changing endpoint goes through apply_status_change(), which
also runs the side effects (revisions, feedback, completion payout).
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core import ledger, pricing
from brandbite.core.enums import LedgerReason, TicketStatus
from brandbite.core.errors import InvalidTransition, NotFound
from brandbite.core.payout_tiers import current_payout_percent
from brandbite.core.roles import CompanyRole
from brandbite.db.types import utcnow
from brandbite.models.job_type import JobType
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.ticket import Ticket, TicketRevision
from brandbite.models.user import UserAccount

logger = logging.getLogger(__name__)

TODO = TicketStatus.TODO
IN_PROGRESS = TicketStatus.IN_PROGRESS
IN_REVIEW = TicketStatus.IN_REVIEW
DONE = TicketStatus.DONE


class ActorKind(str, enum.Enum):
    CREATIVE = "CREATIVE"
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class BoardActor:
    kind: ActorKind
    # only meaningful for customers
    company_role: Optional[CompanyRole] = None


CREATIVE_TRANSITIONS: dict[TicketStatus, FrozenSet[TicketStatus]] = {
    TODO: frozenset({IN_PROGRESS}),
    IN_PROGRESS: frozenset({IN_REVIEW}),
    IN_REVIEW: frozenset({IN_PROGRESS}),
    DONE: frozenset(),
}

# Customers act only on work that is waiting for review
CUSTOMER_APPROVER_ROLES = frozenset({CompanyRole.OWNER, CompanyRole.PM})
CUSTOMER_REVIEWER_ROLES = frozenset({CompanyRole.OWNER, CompanyRole.PM, CompanyRole.MEMBER})


def next_allowed_states(actor: BoardActor, current: TicketStatus) -> FrozenSet[TicketStatus]:
    current = TicketStatus(current)

    if actor.kind == ActorKind.ADMIN:
        return frozenset(s for s in TicketStatus if s != current)

    if actor.kind == ActorKind.CREATIVE:
        return CREATIVE_TRANSITIONS[current]

    if actor.kind == ActorKind.CUSTOMER:
        if current != IN_REVIEW:
            return frozenset()
        allowed: set[TicketStatus] = set()
        if actor.company_role in CUSTOMER_REVIEWER_ROLES:
            allowed.add(IN_PROGRESS)
        if actor.company_role in CUSTOMER_APPROVER_ROLES:
            allowed.add(DONE)
        return frozenset(allowed)

    return frozenset()


def is_transition_allowed(actor: BoardActor, current: TicketStatus, target: TicketStatus) -> bool:
    if TicketStatus(current) == TicketStatus(target):
        return True
    return TicketStatus(target) in next_allowed_states(actor, current)


@dataclass
class TransitionResult:
    ticket: Ticket
    previous_status: TicketStatus
    changed: bool
    revision: Optional[TicketRevision] = None
    payout_entry: Optional[LedgerEntry] = None


async def lock_ticket(db: AsyncSession, ticket_id) -> Ticket:
    await db.flush()
    stmt = (
        select(Ticket)
        .where(Ticket.id == ticket_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    ticket = (await db.execute(stmt)).scalar_one_or_none()
    if ticket is None:
        raise NotFound("Ticket not found", ticket_id=str(ticket_id))
    return ticket


async def latest_revision(db: AsyncSession, ticket_id) -> Optional[TicketRevision]:
    stmt = (
        select(TicketRevision)
        .where(TicketRevision.ticket_id == ticket_id)
        .order_by(TicketRevision.version.desc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _open_revision(db: AsyncSession, ticket: Ticket, user: UserAccount, message: Optional[str]) -> TicketRevision:
    version = int(ticket.revision_count or 0) + 1
    revision = TicketRevision(
        ticket_id=ticket.id,
        version=version,
        submitted_by_id=user.id,
        submitted_at=utcnow(),
        creative_message=message,
    )
    db.add(revision)
    ticket.revision_count = version
    return revision


async def _stamp_feedback(db: AsyncSession, ticket: Ticket, user: UserAccount, message: Optional[str]) -> Optional[TicketRevision]:
    revision = await latest_revision(db, ticket.id)
    if revision is None or revision.feedback_at is not None:
        return revision
    revision.feedback_by_id = user.id
    revision.feedback_at = utcnow()
    revision.feedback_message = message
    return revision


async def _pay_creative(db: AsyncSession, ticket: Ticket) -> Optional[LedgerEntry]:
    """Completion credit, written at most once per ticket."""
    if ticket.creative_id is None or ticket.job_type_id is None:
        return None
    if await ledger.has_entry_for_ticket(db, ticket.id, LedgerReason.TICKET_COMPLETED_PAYOUT):
        return None

    job_type = await db.get(JobType, ticket.job_type_id)
    creative = await db.get(UserAccount, ticket.creative_id)
    if job_type is None or creative is None:
        return None

    base = int(job_type.creative_payout_tokens or 0) * max(1, int(ticket.quantity or 1))
    # evaluated before this ticket counts as completed
    percent = await current_payout_percent(db, creative.id)
    amount = pricing.scaled_payout(base, percent)
    if amount <= 0:
        return None

    return await ledger.credit(
        db,
        creative,
        amount,
        LedgerReason.TICKET_COMPLETED_PAYOUT,
        ticket_id=ticket.id,
        company_id=ticket.company_id,
        notes=f"Payout for ticket {ticket.id}",
        metadata={
            "job_type_id": str(job_type.id),
            "base_payout_tokens": base,
            "payout_percent": percent,
            "quantity": ticket.quantity,
        },
    )


async def apply_status_change(
    db: AsyncSession,
    ticket: Ticket,
    target: TicketStatus,
    *,
    actor: BoardActor,
    user: UserAccount,
    message: Optional[str] = None,
) -> TransitionResult:
    """
    Validate and apply one board move. Flushes only; the caller commits.
    Same-status moves succeed without side effects.
    """
    ticket = await lock_ticket(db, ticket.id)
    current = TicketStatus(ticket.status)
    target = TicketStatus(target)

    if current == target:
        return TransitionResult(ticket=ticket, previous_status=current, changed=False)

    allowed = next_allowed_states(actor, current)
    if target not in allowed:
        raise InvalidTransition(
            f"Cannot move ticket from {current.value} to {target.value}",
            from_status=current.value,
            to_status=target.value,
            allowed=sorted(s.value for s in allowed),
        )

    result = TransitionResult(ticket=ticket, previous_status=current, changed=True)

    if current == IN_PROGRESS and target == IN_REVIEW and actor.kind == ActorKind.CREATIVE:
        result.revision = await _open_revision(db, ticket, user, message)
    elif current == IN_REVIEW and target == IN_PROGRESS and actor.kind == ActorKind.CUSTOMER:
        result.revision = await _stamp_feedback(db, ticket, user, message)

    if target == DONE:
        result.payout_entry = await _pay_creative(db, ticket)
        ticket.completed_at = utcnow()
    elif current == DONE:
        ticket.completed_at = None

    ticket.status = target
    await db.flush()

    logger.info(
        "board move ticket=%s %s->%s actor=%s user=%s",
        ticket.id,
        current.value,
        target.value,
        actor.kind.value,
        user.id,
    )
    return result
