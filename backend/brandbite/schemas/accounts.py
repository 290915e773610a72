# backend/brandbite/schemas/accounts.py
"""Admin views of companies and users."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from brandbite.core.roles import UserRole
from brandbite.schemas.ledger import LedgerEntryOut


# -----------------------------
# Companies
# -----------------------------
class PlanSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    monthly_tokens: int


class CompanyCountsOut(BaseModel):
    members: int = 0
    projects: int = 0
    tickets: int = 0


class AdminCompanyOut(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    token_balance: int
    auto_assign_enabled: bool
    plan: Optional[PlanSummaryOut] = None
    counts: CompanyCountsOut
    created_at: datetime


class CompaniesStatsOut(BaseModel):
    total_companies: int
    total_token_balance: int
    avg_token_balance: float
    companies_with_plan: int


class AdminCompaniesOut(BaseModel):
    stats: CompaniesStatsOut
    companies: List[AdminCompanyOut]


class PlanAssignmentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    company_id: uuid.UUID
    # null removes the company's plan
    plan_id: Optional[uuid.UUID] = None
    grant_tokens: bool = False


class PlanAssignmentOut(BaseModel):
    company: AdminCompanyOut
    ledger_entry: Optional[LedgerEntryOut] = None


# -----------------------------
# Users
# -----------------------------
class AdminUserOut(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: UserRole
    is_active: bool
    is_paused: bool
    created_at: datetime
    company_count: int = 0
    assigned_tickets: int = 0


class AdminUsersOut(BaseModel):
    users: List[AdminUserOut]


class AdminUserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    user_id: uuid.UUID
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
