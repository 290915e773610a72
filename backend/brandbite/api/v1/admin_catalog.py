# backend/brandbite/api/v1/admin_catalog.py
"""Admin catalog: plans, job types and job-type categories."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, require_admin
from brandbite.api.updates import patch_fields
from brandbite.core import catalog
from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.core.pricing import price_job_type
from brandbite.db.session import get_db
from brandbite.models.job_type import JobType, JobTypeCategory
from brandbite.models.plan import Plan
from brandbite.schemas.catalog import (
    CategoryMigrationOut,
    JobTypeCategoryCreate,
    JobTypeCategoryOut,
    JobTypeCategoryUpdate,
    JobTypeCreate,
    JobTypeListOut,
    JobTypeOut,
    JobTypeUpdate,
    PlanCreate,
    PlanOut,
    PlanUpdate,
)

router = APIRouter(prefix="/admin", tags=["admin"])


async def _commit_unique(db: AsyncSession, message: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationFailed(message, code="duplicate")


# -----------------------------
# Plans
# -----------------------------
@router.get("/plans", response_model=list[PlanOut])
async def list_plans(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    return (await db.execute(select(Plan).order_by(Plan.monthly_tokens.asc()))).scalars().all()


@router.post("/plans", response_model=PlanOut, status_code=status.HTTP_201_CREATED)
async def create_plan(
    payload: PlanCreate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    plan = Plan(**payload.model_dump())
    plan.name = plan.name.strip()
    db.add(plan)
    await _commit_unique(db, "A plan with this name already exists")
    return plan


@router.patch("/plans", response_model=PlanOut)
async def update_plan(
    payload: PlanUpdate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    plan = await db.get(Plan, payload.id)
    if plan is None:
        raise NotFound("Plan not found", plan_id=str(payload.id))

    data = patch_fields(payload, nullable={"price_cents"})
    if "name" in data:
        data["name"] = data["name"].strip()
    for key, value in data.items():
        setattr(plan, key, value)

    await _commit_unique(db, "A plan with this name already exists")
    return plan


# -----------------------------
# Job types
# -----------------------------
@router.get("/job-types", response_model=JobTypeListOut)
async def list_job_types(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
    include_inactive: bool = Query(True),
):
    stmt = select(JobType).order_by(JobType.name.asc())
    if not include_inactive:
        stmt = stmt.where(JobType.is_active.is_(True))
    rows = (await db.execute(stmt)).scalars().all()
    return JobTypeListOut(items=[JobTypeOut.model_validate(j) for j in rows])


@router.post("/job-types", response_model=JobTypeOut, status_code=status.HTTP_201_CREATED)
async def create_job_type(
    payload: JobTypeCreate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    """
    token_cost / creative_payout_tokens are derived from estimated_hours.
    """
    if payload.category_id is not None and await db.get(JobTypeCategory, payload.category_id) is None:
        raise NotFound("Category not found", category_id=str(payload.category_id))

    token_cost, payout = price_job_type(payload.estimated_hours)
    job_type = JobType(
        name=payload.name,
        description=payload.description,
        category_id=payload.category_id,
        category=payload.category,
        estimated_hours=payload.estimated_hours,
        token_cost=token_cost,
        creative_payout_tokens=payout,
        is_active=payload.is_active,
    )
    db.add(job_type)
    await db.commit()
    return job_type


@router.patch("/job-types", response_model=JobTypeOut)
async def update_job_type(
    payload: JobTypeUpdate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    job_type = await db.get(JobType, payload.id)
    if job_type is None:
        raise NotFound("Job type not found", job_type_id=str(payload.id))

    data = patch_fields(payload, nullable={"description", "category_id"})

    if data.get("category_id") is not None and await db.get(JobTypeCategory, data["category_id"]) is None:
        raise NotFound("Category not found", category_id=str(data["category_id"]))

    for key, value in data.items():
        setattr(job_type, key, value)

    if "estimated_hours" in data:
        job_type.token_cost, job_type.creative_payout_tokens = price_job_type(job_type.estimated_hours)

    await db.commit()
    return job_type


# -----------------------------
# Job type categories
# -----------------------------
@router.get("/job-type-categories", response_model=list[JobTypeCategoryOut])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    rows = (
        await db.execute(select(JobTypeCategory).order_by(JobTypeCategory.sort_order.asc(), JobTypeCategory.name.asc()))
    ).scalars().all()
    counts = await catalog.category_job_type_counts(db)
    return [
        JobTypeCategoryOut(
            id=c.id,
            name=c.name,
            slug=c.slug,
            icon=c.icon,
            sort_order=c.sort_order,
            is_active=c.is_active,
            job_type_count=counts.get(c.id, 0),
        )
        for c in rows
    ]


@router.post("/job-type-categories", response_model=JobTypeCategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: JobTypeCategoryCreate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    name = payload.name.strip()
    slug = catalog.slugify(payload.slug or name)
    if not slug:
        raise ValidationFailed("Could not derive a slug from the category name")

    category = JobTypeCategory(
        name=name,
        slug=slug,
        icon=payload.icon,
        sort_order=payload.sort_order,
        is_active=payload.is_active,
    )
    db.add(category)
    await _commit_unique(db, "A category with this slug already exists")
    return JobTypeCategoryOut.model_validate(category)


@router.post("/job-type-categories/migrate", response_model=CategoryMigrationOut)
async def migrate_categories(
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    created, linked = await catalog.migrate_text_categories(db)
    await db.commit()
    return CategoryMigrationOut(categories_created=created, job_types_linked=linked)


@router.patch("/job-type-categories/{category_id}", response_model=JobTypeCategoryOut)
async def update_category(
    category_id: uuid.UUID,
    payload: JobTypeCategoryUpdate,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    category = await db.get(JobTypeCategory, category_id)
    if category is None:
        raise NotFound("Category not found", category_id=str(category_id))

    data = patch_fields(payload, nullable={"icon"}, exclude=())
    for key, value in data.items():
        setattr(category, key, value)

    await db.commit()
    counts = await catalog.category_job_type_counts(db)
    out = JobTypeCategoryOut.model_validate(category)
    out.job_type_count = counts.get(category.id, 0)
    return out


@router.delete("/job-type-categories/{category_id}")
async def delete_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    _: SessionContext = Depends(require_admin),
):
    unlinked = await catalog.delete_category(db, category_id)
    await db.commit()
    return {"status": "ok", "unlinked_job_types": unlinked}
