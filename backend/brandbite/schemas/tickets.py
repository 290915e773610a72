# backend/brandbite/schemas/tickets.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brandbite.core.enums import TicketPriority, TicketStatus


class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    job_type_id: Optional[uuid.UUID] = None
    priority: TicketPriority = TicketPriority.MEDIUM
    quantity: int = Field(1, ge=1, le=10)
    due_date: Optional[datetime] = None


class TicketStatusUpdate(BaseModel):
    ticket_id: uuid.UUID
    status: TicketStatus
    # creative note on submit-for-review, customer feedback on request-changes
    message: Optional[str] = Field(None, max_length=5000)


class AdminTicketUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ticket_id: uuid.UUID
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    creative_id: Optional[uuid.UUID] = None
    unassign: bool = False


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    company_id: uuid.UUID
    project_id: Optional[uuid.UUID] = None
    job_type_id: Optional[uuid.UUID] = None
    creative_id: Optional[uuid.UUID] = None
    created_by_id: Optional[uuid.UUID] = None

    title: str
    description: Optional[str] = None
    status: TicketStatus
    priority: TicketPriority
    quantity: int
    due_date: Optional[datetime] = None

    company_ticket_number: int
    revision_count: int
    completed_at: Optional[datetime] = None

    created_at: datetime
    updated_at: datetime


class TicketPageOut(BaseModel):
    items: List[TicketOut]
    limit: int
    offset: int
    total: int


class StatusChangeOut(BaseModel):
    ticket: TicketOut
    previous_status: TicketStatus
    changed: bool
    revision_version: Optional[int] = None
    payout_tokens: Optional[int] = None
    allowed_next: List[TicketStatus] = Field(default_factory=list)


class BoardColumnOut(BaseModel):
    status: TicketStatus
    tickets: List[TicketOut]


class BoardOut(BaseModel):
    company_id: uuid.UUID
    columns: List[BoardColumnOut]
    counts: Dict[str, int]


class RevisionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ticket_id: uuid.UUID
    version: int
    submitted_by_id: Optional[uuid.UUID] = None
    submitted_at: datetime
    creative_message: Optional[str] = None
    feedback_by_id: Optional[uuid.UUID] = None
    feedback_at: Optional[datetime] = None
    feedback_message: Optional[str] = None


class CommentCreate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ticket_id: uuid.UUID
    author_id: Optional[uuid.UUID] = None
    body: str
    created_at: datetime
