from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from brandbite.core.roles import CompanyRole


class AppSettingsOut(BaseModel):
    settings: Dict[str, str]


class AppSettingsUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_withdrawal_tokens: Optional[int] = Field(None, ge=1, le=1_000_000)


class AvailabilityUpdate(BaseModel):
    # 1_HOUR | 7_DAYS | MANUAL; ignored when unpausing
    is_paused: bool
    pause_type: Optional[str] = None


class AvailabilityOut(BaseModel):
    is_paused: bool
    paused_at: Optional[datetime] = None
    pause_expires_at: Optional[datetime] = None
    pause_type: Optional[str] = None
    remaining_seconds: Optional[int] = None


class CustomerSettingsOut(BaseModel):
    user_id: uuid.UUID
    email: str
    name: Optional[str] = None
    company_id: uuid.UUID
    company_name: str
    company_slug: str
    company_role: CompanyRole
    auto_assign_enabled: bool
    plan_name: Optional[str] = None
    monthly_tokens: Optional[int] = None
    token_balance: int


class MemberOut(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: str
    name: Optional[str] = None
    company_role: CompanyRole
    created_at: datetime


class MembersOut(BaseModel):
    company_id: uuid.UUID
    members: List[MemberOut]
