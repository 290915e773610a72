from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PayoutTierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    min_completed_tickets: int = Field(..., ge=1)
    time_window_days: int = Field(..., ge=1, le=365)
    payout_percent: int = Field(..., ge=1, le=100)
    is_active: bool = True


class PayoutTierUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = None
    min_completed_tickets: Optional[int] = Field(None, ge=1)
    time_window_days: Optional[int] = Field(None, ge=1, le=365)
    payout_percent: Optional[int] = Field(None, ge=1, le=100)
    is_active: Optional[bool] = None


class PayoutTierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    min_completed_tickets: int
    time_window_days: int
    payout_percent: int
    is_active: bool
    created_at: datetime


class TierProgressOut(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    min_completed_tickets: int
    time_window_days: int
    payout_percent: int
    completed_in_window: int
    qualified: bool


class CreativePayoutTierOut(BaseModel):
    current_payout_percent: int
    current_tier_name: Optional[str] = None
    base_payout_percent: int
    tiers: List[TierProgressOut]
