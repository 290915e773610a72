# brandbite/core/withdrawals.py
"""
Creative withdrawal workflow:

    PENDING --APPROVE--> APPROVED --MARK_PAID--> PAID
    PENDING --REJECT---> REJECTED

Funds move only at MARK_PAID (ledger DEBIT). In-flight PENDING/APPROVED
requests are reserved against the balance when a new request is created.
"""
from __future__ import annotations

import enum
import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core import ledger
from brandbite.core.app_settings import min_withdrawal_tokens
from brandbite.core.enums import LedgerReason, WithdrawalStatus
from brandbite.core.errors import InsufficientBalance, InvalidTransition, NotFound, ValidationFailed
from brandbite.db.types import utcnow
from brandbite.models.user import UserAccount
from brandbite.models.withdrawal import Withdrawal

logger = logging.getLogger(__name__)

IN_FLIGHT_STATUSES = (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED)


class WithdrawalAction(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    MARK_PAID = "MARK_PAID"


# action -> (required source status, resulting status)
ACTION_TRANSITIONS: dict[WithdrawalAction, tuple[WithdrawalStatus, WithdrawalStatus]] = {
    WithdrawalAction.APPROVE: (WithdrawalStatus.PENDING, WithdrawalStatus.APPROVED),
    WithdrawalAction.REJECT: (WithdrawalStatus.PENDING, WithdrawalStatus.REJECTED),
    WithdrawalAction.MARK_PAID: (WithdrawalStatus.APPROVED, WithdrawalStatus.PAID),
}


async def reserved_tokens(db: AsyncSession, creative_id: uuid.UUID, exclude_id: Optional[uuid.UUID] = None) -> int:
    stmt = select(func.coalesce(func.sum(Withdrawal.amount_tokens), 0)).where(
        Withdrawal.creative_id == creative_id,
        Withdrawal.status.in_(IN_FLIGHT_STATUSES),
    )
    if exclude_id is not None:
        stmt = stmt.where(Withdrawal.id != exclude_id)
    return int((await db.execute(stmt)).scalar_one() or 0)


async def available_balance(db: AsyncSession, creative: UserAccount) -> int:
    """Ledger balance minus tokens tied up in unpaid requests."""
    balance = await ledger.ledger_balance(db, creative)
    return balance - await reserved_tokens(db, creative.id)


async def create_withdrawal(
    db: AsyncSession,
    creative: UserAccount,
    amount_tokens: int,
    notes: Optional[str] = None,
) -> Withdrawal:
    if isinstance(amount_tokens, bool) or not isinstance(amount_tokens, int) or amount_tokens <= 0:
        raise ValidationFailed("amount_tokens must be a positive integer")

    minimum = await min_withdrawal_tokens(db)
    if amount_tokens < minimum:
        raise ValidationFailed(
            f"Minimum withdrawal amount is {minimum} tokens.",
            code="below_minimum_withdrawal",
            minimum=minimum,
        )

    # serialize concurrent requests from the same creative
    creative = await ledger.lock_owner(db, creative)
    available = await available_balance(db, creative)
    if amount_tokens > available:
        raise InsufficientBalance(
            "Requested amount exceeds your available token balance.",
            available=available,
            requested=amount_tokens,
        )

    withdrawal = Withdrawal(
        creative_id=creative.id,
        amount_tokens=amount_tokens,
        status=WithdrawalStatus.PENDING,
        notes=notes,
    )
    db.add(withdrawal)
    await db.flush()

    logger.info("withdrawal %s requested creative=%s amount=%s", withdrawal.id, creative.id, amount_tokens)
    return withdrawal


async def _lock_withdrawal(db: AsyncSession, withdrawal_id: uuid.UUID) -> Withdrawal:
    stmt = (
        select(Withdrawal)
        .where(Withdrawal.id == withdrawal_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    w = (await db.execute(stmt)).scalar_one_or_none()
    if w is None:
        raise NotFound("Withdrawal not found", withdrawal_id=str(withdrawal_id))
    return w


async def apply_action(
    db: AsyncSession,
    withdrawal_id: uuid.UUID,
    action: WithdrawalAction,
    *,
    reason: Optional[str] = None,
) -> Withdrawal:
    """Admin transition. Flushes only; the caller commits."""
    action = WithdrawalAction(action)
    withdrawal = await _lock_withdrawal(db, withdrawal_id)

    source, target = ACTION_TRANSITIONS[action]
    current = WithdrawalStatus(withdrawal.status)
    if current != source:
        raise InvalidTransition(
            f"Cannot {action.value} a {current.value} withdrawal",
            action=action.value,
            status=current.value,
        )

    now = utcnow()
    if action == WithdrawalAction.APPROVE:
        withdrawal.approved_at = now

    elif action == WithdrawalAction.REJECT:
        cleaned = (reason or "").strip()
        if not cleaned:
            raise ValidationFailed("A rejection reason is required", code="reject_reason_required")
        withdrawal.admin_reject_reason = cleaned

    elif action == WithdrawalAction.MARK_PAID:
        creative = await db.get(UserAccount, withdrawal.creative_id)
        if creative is None:
            raise NotFound("Creative not found", creative_id=str(withdrawal.creative_id))
        entry = await ledger.debit(
            db,
            creative,
            withdrawal.amount_tokens,
            LedgerReason.WITHDRAWAL_PAID,
            notes=f"Withdrawal {withdrawal.id} paid",
            metadata={"withdrawal_id": str(withdrawal.id)},
        )
        withdrawal.paid_at = now
        withdrawal.ledger_entry_id = entry.id

    withdrawal.status = target
    await db.flush()

    logger.info("withdrawal %s %s -> %s", withdrawal.id, current.value, target.value)
    return withdrawal
