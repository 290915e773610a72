# brandbite/models/ledger_entry.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.core.enums import LedgerDirection, LedgerOwnerType
from brandbite.db.base import Base
from brandbite.db.types import JSONType, UTCDateTime, str_enum, utcnow


class LedgerEntry(Base):
    """
    Canonical, append-only token ledger.

    Every row belongs to exactly one owner:
      - owner_type=COMPANY -> company_id is the owner
      - owner_type=USER    -> user_id is the owner (company_id is context only)

    balance_before / balance_after snapshot the owner's cached balance around
    this movement. Rows are never updated or deleted; corrections are new
    offsetting entries.

    NOTE: the attribute cannot be named "metadata" (SQLAlchemy Declarative),
    so `entry_metadata` maps to the DB column "metadata".
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ledger_entries_amount_positive"),
        Index("ix_ledger_entries_company_created", "company_id", "created_at"),
        Index("ix_ledger_entries_user_created", "user_id", "created_at"),
        Index("ix_ledger_entries_ticket_reason", "ticket_id", "reason"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_type: Mapped[LedgerOwnerType] = mapped_column(str_enum(LedgerOwnerType, 10), nullable=False)

    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )
    ticket_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="SET NULL"), nullable=True
    )

    direction: Mapped[LedgerDirection] = mapped_column(str_enum(LedgerDirection, 10), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    # PLAN_PURCHASE, JOB_REQUEST_CREATED, TICKET_COMPLETED_PAYOUT, WITHDRAWAL_PAID, ...
    reason: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    entry_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONType,
        nullable=False,
        default=dict,
    )

    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False, index=True
    )
