# backend/brandbite/models/ticket.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from brandbite.core.enums import TicketPriority, TicketStatus
from brandbite.db.base import Base
from brandbite.db.types import UTCDateTime, str_enum, utcnow


class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        # Human-readable codes (#101, WEB-102) rely on this
        UniqueConstraint("company_id", "company_ticket_number", name="uq_tickets_company_number"),
        Index("ix_tickets_creative_status", "creative_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    company_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True
    )
    job_type_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("job_types.id", ondelete="SET NULL"), nullable=True
    )
    creative_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[TicketStatus] = mapped_column(
        str_enum(TicketStatus, 20), nullable=False, default=TicketStatus.TODO
    )
    priority: Mapped[TicketPriority] = mapped_column(
        str_enum(TicketPriority, 20), nullable=False, default=TicketPriority.MEDIUM
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    company_ticket_number: Mapped[int] = mapped_column(Integer, nullable=False)
    revision_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    # Set when the ticket enters DONE; payout tiers count completions by this
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )


class TicketRevision(Base):
    __tablename__ = "ticket_revisions"
    __table_args__ = (
        UniqueConstraint("ticket_id", "version", name="uq_ticket_revisions_ticket_version"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    submitted_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )
    submitted_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
    creative_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    feedback_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )
    feedback_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    feedback_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class TicketComment(Base):
    __tablename__ = "ticket_comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, server_default=func.now(), nullable=False)
