from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from brandbite.core.enums import LedgerDirection, LedgerOwnerType, LedgerReason

ADJUSTMENT_REASONS = frozenset({LedgerReason.ADMIN_ADJUSTMENT, LedgerReason.REFUND})


class LedgerEntryOut(BaseModel):
    id: uuid.UUID
    owner_type: LedgerOwnerType
    company_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    ticket_id: Optional[uuid.UUID] = None

    direction: LedgerDirection
    amount: int
    reason: Optional[str] = None
    notes: Optional[str] = None

    balance_before: int
    balance_after: int

    created_at: datetime

    entry_metadata: Dict[str, Any] = Field(default_factory=dict)


class LedgerPageOut(BaseModel):
    items: List[LedgerEntryOut]
    limit: int
    offset: int
    total: int


class LedgerAdjustmentCreate(BaseModel):
    """Exactly one of company_id / user_id."""

    company_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    direction: LedgerDirection
    amount: int = Field(..., gt=0)
    # corrections and refunds only; every other reason is written by its own workflow
    reason: LedgerReason = LedgerReason.ADMIN_ADJUSTMENT
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("reason", mode="before")
    @classmethod
    def _adjustment_reason(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
        if v not in ADJUSTMENT_REASONS:
            raise ValueError("reason must be ADMIN_ADJUSTMENT or REFUND")
        return v

    @model_validator(mode="after")
    def _one_owner(self) -> "LedgerAdjustmentCreate":
        if (self.company_id is None) == (self.user_id is None):
            raise ValueError("Provide exactly one of company_id or user_id")
        return self


class CompanyTokensOut(BaseModel):
    company_id: uuid.UUID
    token_balance: int
    plan_name: Optional[str] = None
    monthly_tokens: Optional[int] = None
    entries: List[LedgerEntryOut]


class CreativeBalanceOut(BaseModel):
    creative_id: uuid.UUID
    balance: int
    available_balance: int
    reserved_tokens: int
    total_earned: int
    total_withdrawn: int
    entries: List[LedgerEntryOut]
