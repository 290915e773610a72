# brandbite/core/ledger.py
"""
Token ledger engine.

Owners are either a Company (customer balance) or a UserAccount (creative
earnings). Every movement:
  1) locks the owner row (SELECT ... FOR UPDATE),
  2) checks the cached balance,
  3) appends an immutable LedgerEntry with before/after snapshots,
  4) writes the new cached balance.

These helpers only flush. The calling endpoint owns the transaction and
commits once, so a ticket debit or a withdrawal payout lands together with
the row change that caused it.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Union

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.enums import LedgerDirection, LedgerOwnerType, LedgerReason
from brandbite.core.errors import InsufficientBalance, NotFound, ValidationFailed
from brandbite.models.company import Company
from brandbite.models.ledger_entry import LedgerEntry
from brandbite.models.user import UserAccount

logger = logging.getLogger(__name__)

Owner = Union[Company, UserAccount]


def owner_type_of(owner: Owner) -> LedgerOwnerType:
    if isinstance(owner, Company):
        return LedgerOwnerType.COMPANY
    if isinstance(owner, UserAccount):
        return LedgerOwnerType.USER
    raise TypeError(f"Unsupported ledger owner: {type(owner).__name__}")


def _owner_filter(owner_type: LedgerOwnerType, owner_id: uuid.UUID):
    if owner_type == LedgerOwnerType.COMPANY:
        return (LedgerEntry.owner_type == LedgerOwnerType.COMPANY, LedgerEntry.company_id == owner_id)
    return (LedgerEntry.owner_type == LedgerOwnerType.USER, LedgerEntry.user_id == owner_id)


async def lock_owner(db: AsyncSession, owner: Owner) -> Owner:
    """
    Re-read the owner row under a row lock and refresh the identity-map copy.
    SQLite ignores FOR UPDATE; Postgres serializes concurrent movers here.
    """
    # sessions run with autoflush=False; push pending owner changes first
    await db.flush()

    model = type(owner)
    stmt = (
        select(model)
        .where(model.id == owner.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    locked = (await db.execute(stmt)).scalar_one_or_none()
    if locked is None:
        raise NotFound(f"{model.__name__} not found", id=str(owner.id))
    return locked


def _reason_value(reason: LedgerReason | str | None) -> Optional[str]:
    if reason is None:
        return None
    return getattr(reason, "value", reason)


async def _apply(
    db: AsyncSession,
    owner: Owner,
    *,
    direction: LedgerDirection,
    amount: int,
    reason: LedgerReason | str | None,
    ticket_id: Optional[uuid.UUID] = None,
    company_id: Optional[uuid.UUID] = None,
    notes: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> LedgerEntry:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationFailed("Token amount must be a positive integer", amount=amount)

    owner_type = owner_type_of(owner)
    owner = await lock_owner(db, owner)

    balance_before = int(owner.token_balance or 0)
    if direction == LedgerDirection.DEBIT:
        if amount > balance_before:
            raise InsufficientBalance(
                "Insufficient token balance",
                balance=balance_before,
                required=amount,
            )
        balance_after = balance_before - amount
    else:
        balance_after = balance_before + amount

    entry = LedgerEntry(
        owner_type=owner_type,
        company_id=owner.id if owner_type == LedgerOwnerType.COMPANY else company_id,
        user_id=owner.id if owner_type == LedgerOwnerType.USER else None,
        ticket_id=ticket_id,
        direction=direction,
        amount=amount,
        reason=_reason_value(reason),
        notes=notes,
        entry_metadata=metadata or {},
        balance_before=balance_before,
        balance_after=balance_after,
    )
    db.add(entry)

    owner.token_balance = balance_after
    await db.flush()

    logger.info(
        "ledger %s %s owner=%s:%s amount=%s reason=%s balance %s->%s",
        direction.value,
        entry.id,
        owner_type.value,
        owner.id,
        amount,
        entry.reason,
        balance_before,
        balance_after,
    )
    return entry


async def credit(
    db: AsyncSession,
    owner: Owner,
    amount: int,
    reason: LedgerReason | str | None,
    ticket_id: Optional[uuid.UUID] = None,
    **kwargs: Any,
) -> LedgerEntry:
    return await _apply(
        db, owner, direction=LedgerDirection.CREDIT, amount=amount, reason=reason, ticket_id=ticket_id, **kwargs
    )


async def debit(
    db: AsyncSession,
    owner: Owner,
    amount: int,
    reason: LedgerReason | str | None,
    ticket_id: Optional[uuid.UUID] = None,
    **kwargs: Any,
) -> LedgerEntry:
    """Raises InsufficientBalance when amount exceeds the owner's balance."""
    return await _apply(
        db, owner, direction=LedgerDirection.DEBIT, amount=amount, reason=reason, ticket_id=ticket_id, **kwargs
    )


def balance_of(owner: Owner) -> int:
    return int(owner.token_balance or 0)


async def ledger_balance(db: AsyncSession, owner: Owner) -> int:
    """sum(CREDIT) - sum(DEBIT) for the owner, straight from the ledger."""
    signed = case(
        (LedgerEntry.direction == LedgerDirection.CREDIT, LedgerEntry.amount),
        else_=-LedgerEntry.amount,
    )
    stmt = select(func.coalesce(func.sum(signed), 0)).where(*_owner_filter(owner_type_of(owner), owner.id))
    return int((await db.execute(stmt)).scalar_one() or 0)


async def recalculate_balance(db: AsyncSession, owner: Owner) -> int:
    """Repair: set the cached balance to the ledger total."""
    owner = await lock_owner(db, owner)
    real = await ledger_balance(db, owner)
    if owner.token_balance != real:
        logger.warning(
            "ledger repair %s:%s cached=%s ledger=%s",
            owner_type_of(owner).value,
            owner.id,
            owner.token_balance,
            real,
        )
        owner.token_balance = real
        await db.flush()
    return real


async def has_entry_for_ticket(db: AsyncSession, ticket_id: uuid.UUID, reason: LedgerReason | str) -> bool:
    stmt = (
        select(LedgerEntry.id)
        .where(LedgerEntry.ticket_id == ticket_id, LedgerEntry.reason == _reason_value(reason))
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none() is not None
