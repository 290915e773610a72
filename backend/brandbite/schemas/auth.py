# backend/brandbite/schemas/auth.py
from __future__ import annotations

import uuid
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from brandbite.core.roles import CompanyRole, UserRole


class MagicCodeRequest(BaseModel):
    email: EmailStr


class MagicCodeVerify(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=64)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class MembershipOut(BaseModel):
    company_id: uuid.UUID
    company_name: str
    company_role: CompanyRole


class MeResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    role: UserRole
    role_label: str
    is_active: bool
    active_company_id: Optional[uuid.UUID] = None
    company_role: Optional[CompanyRole] = None
    memberships: List[MembershipOut] = Field(default_factory=list)
