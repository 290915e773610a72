from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brandbite.core.enums import WithdrawalStatus
from brandbite.core.withdrawals import WithdrawalAction


class WithdrawalCreate(BaseModel):
    amount_tokens: int = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=2000)


class WithdrawalActionRequest(BaseModel):
    id: uuid.UUID
    action: WithdrawalAction
    reason: Optional[str] = Field(None, max_length=2000)


class WithdrawalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    creative_id: uuid.UUID
    amount_tokens: int
    status: WithdrawalStatus
    notes: Optional[str] = None
    admin_reject_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    ledger_entry_id: Optional[uuid.UUID] = None
    created_at: datetime


class WithdrawalStatsOut(BaseModel):
    available_balance: int
    total_requested: int
    pending_count: int
    withdrawals_count: int
    min_withdrawal_tokens: int


class CreativeWithdrawalsOut(BaseModel):
    stats: WithdrawalStatsOut
    withdrawals: List[WithdrawalOut]


class AdminWithdrawalOut(WithdrawalOut):
    creative_email: Optional[str] = None
    creative_name: Optional[str] = None


class AdminWithdrawalPageOut(BaseModel):
    items: List[AdminWithdrawalOut]
    limit: int
    offset: int
    total: int
