import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.core.enums import WithdrawalStatus
from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, str_enum, utcnow


class Withdrawal(Base):
    __tablename__ = "withdrawals"
    __table_args__ = (
        CheckConstraint("amount_tokens > 0", name="ck_withdrawals_amount_positive"),
        Index("ix_withdrawals_creative_status", "creative_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    creative_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False
    )

    amount_tokens: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[WithdrawalStatus] = mapped_column(
        str_enum(WithdrawalStatus, 20), nullable=False, default=WithdrawalStatus.PENDING
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    admin_reject_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    approved_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # DEBIT written when the withdrawal is marked PAID
    ledger_entry_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("ledger_entries.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
