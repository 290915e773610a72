# backend/brandbite/models/company.py

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint, Uuid, true
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.core.roles import CompanyRole
from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, str_enum, utcnow


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)

    plan_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True
    )

    # Cached running total of COMPANY ledger entries. Only the ledger engine writes it.
    token_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    auto_assign_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class CompanyMember(Base):
    __tablename__ = "company_members"
    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_members_company_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("user_accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # OWNER | PM | BILLING | MEMBER
    company_role: Mapped[CompanyRole] = mapped_column(
        str_enum(CompanyRole), nullable=False, default=CompanyRole.MEMBER
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
