# brandbite/core/catalog.py
from __future__ import annotations

import logging
import re
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.errors import InvalidTransition, NotFound
from brandbite.models.job_type import JobType, JobTypeCategory

logger = logging.getLogger(__name__)

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")

# name -> (icon, sort_order) for the seeded catalog
KNOWN_CATEGORIES: dict[str, tuple[str, int]] = {
    "Brand Strategy & Creative Direction": ("✨", 0),
    "Copywriting & Creative Writing": ("✍️", 1),
    "Visual Design & Brand Identity": ("\U0001f3a8", 2),
    "Digital Content & Marketing": ("\U0001f4f1", 3),
    "Video & Motion Production": ("\U0001f3ac", 4),
}


def slugify(value: str, max_length: int = 50) -> str:
    v = _SLUG_STRIP_RE.sub("", value.strip().lower())
    v = _SLUG_SPACE_RE.sub("-", v)
    v = _SLUG_DASH_RE.sub("-", v)
    return v[:max_length].strip("-")


async def category_job_type_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
    stmt = (
        select(JobType.category_id, func.count(JobType.id))
        .where(JobType.category_id.is_not(None))
        .group_by(JobType.category_id)
    )
    return {cid: int(n) for cid, n in (await db.execute(stmt)).all()}


async def migrate_text_categories(db: AsyncSession) -> tuple[int, int]:
    """
    One-shot fold of legacy free-text job-type categories into JobTypeCategory rows.
    Refuses to run once any category exists. Returns (created, linked).
    """
    existing = (await db.execute(select(func.count(JobTypeCategory.id)))).scalar_one()
    if existing:
        raise InvalidTransition("Categories already exist. Migration skipped.", code="already_migrated")

    job_types = (await db.execute(select(JobType).where(JobType.category.is_not(None)))).scalars().all()
    names = sorted({(jt.category or "").strip() for jt in job_types} - {""})

    def _order(name: str) -> tuple[int, int, str]:
        known = KNOWN_CATEGORIES.get(name)
        return (0, known[1], name) if known else (1, 0, name)

    names.sort(key=_order)

    by_name: dict[str, JobTypeCategory] = {}
    next_sort = 0
    for name in names:
        icon, sort_order = KNOWN_CATEGORIES.get(name, (None, next_sort))
        cat = JobTypeCategory(name=name, slug=slugify(name) or uuid.uuid4().hex[:12], icon=icon, sort_order=sort_order)
        db.add(cat)
        by_name[name] = cat
        next_sort = max(next_sort, sort_order + 1)
    await db.flush()

    linked = 0
    for jt in job_types:
        cat = by_name.get((jt.category or "").strip())
        if cat is not None:
            jt.category_id = cat.id
            linked += 1
    await db.flush()

    logger.info("job type categories migrated created=%s linked=%s", len(by_name), linked)
    return len(by_name), linked


async def delete_category(db: AsyncSession, category_id: uuid.UUID) -> int:
    """Delete a category, unlinking its job types. Returns the unlinked count."""
    category = await db.get(JobTypeCategory, category_id)
    if category is None:
        raise NotFound("Category not found", category_id=str(category_id))

    res = await db.execute(
        update(JobType).where(JobType.category_id == category_id).values(category_id=None)
    )
    await db.delete(category)
    await db.flush()
    return int(res.rowcount or 0)
