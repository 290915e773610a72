# backend/brandbite/models/user.py
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.core.roles import UserRole
from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, str_enum, utcnow


class UserAccount(Base):
    __tablename__ = "user_accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Platform role; company-scoped roles live on CompanyMember
    role: Mapped[UserRole] = mapped_column(str_enum(UserRole), nullable=False, default=UserRole.CUSTOMER)

    # Creative earnings, cached running total of USER ledger entries
    token_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # Email-first magic code auth
    magic_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    magic_code_expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # Creative availability (expiry evaluated lazily, see core.availability)
    is_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    paused_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    pause_expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    pause_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()

    @staticmethod
    def normalize_name(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        v = " ".join(value.strip().split())
        return v or None
