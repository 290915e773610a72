# backend/brandbite/schemas/catalog.py
"""Plans, job types and job-type categories (admin catalog)."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -----------------------------
# Plans
# -----------------------------
class PlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    monthly_tokens: int = Field(..., gt=0)
    price_cents: Optional[int] = Field(None, ge=0)
    is_active: bool = True


class PlanUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    monthly_tokens: Optional[int] = Field(None, gt=0)
    price_cents: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class PlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    monthly_tokens: int
    price_cents: Optional[int] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# -----------------------------
# Job type categories
# -----------------------------
class JobTypeCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    slug: Optional[str] = Field(None, max_length=120)
    icon: Optional[str] = Field(None, max_length=40)
    sort_order: int = 0
    is_active: bool = True


class JobTypeCategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=120)
    icon: Optional[str] = Field(None, max_length=40)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class JobTypeCategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    icon: Optional[str] = None
    sort_order: int
    is_active: bool
    job_type_count: int = 0


class CategoryMigrationOut(BaseModel):
    categories_created: int
    job_types_linked: int


# -----------------------------
# Job types
# -----------------------------
class JobTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    category: Optional[str] = Field(None, max_length=120)
    estimated_hours: int = Field(..., gt=0, le=1000)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class JobTypeUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    estimated_hours: Optional[int] = Field(None, gt=0, le=1000)
    is_active: Optional[bool] = None


class JobTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    category: Optional[str] = None
    estimated_hours: int
    token_cost: int
    creative_payout_tokens: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class JobTypeListOut(BaseModel):
    items: List[JobTypeOut]
