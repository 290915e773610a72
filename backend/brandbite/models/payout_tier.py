import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, utcnow


class PayoutTier(Base):
    __tablename__ = "payout_tiers"
    __table_args__ = (
        CheckConstraint("min_completed_tickets >= 1", name="ck_payout_tiers_min_completed"),
        CheckConstraint("time_window_days >= 1", name="ck_payout_tiers_window"),
        CheckConstraint("payout_percent BETWEEN 1 AND 100", name="ck_payout_tiers_percent"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    min_completed_tickets: Mapped[int] = mapped_column(Integer, nullable=False)
    time_window_days: Mapped[int] = mapped_column(Integer, nullable=False)
    payout_percent: Mapped[int] = mapped_column(Integer, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Tie-break between equal payout_percent tiers (earliest wins)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
