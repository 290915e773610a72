# backend/brandbite/models/job_type.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, utcnow


class JobTypeCategory(Base):
    __tablename__ = "job_type_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)


class JobType(Base):
    """
    Catalog entry for a class of design work.

    token_cost and creative_payout_tokens are derived from estimated_hours
    (see core.pricing); never set them directly from request payloads.
    """

    __tablename__ = "job_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("job_type_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Legacy free-text category, folded into category_id by the migrate endpoint
    category: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    estimated_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    token_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    creative_payout_tokens: Mapped[int] = mapped_column(Integer, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )
