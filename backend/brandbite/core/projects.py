# backend/brandbite/core/projects.py
"""
Company projects.

A project's code prefixes its tickets (WEB -> WEB-101). Codes are unique per
company; when the customer does not pick one it is derived from the name.
"""
from __future__ import annotations

import logging
import re
import uuid
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.core.errors import NotFound, ValidationFailed
from brandbite.models.company import Company
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MAX_CODE_LENGTH = 10
DEFAULT_CODE = "PRJ"

_CODE_RE = re.compile(r"^[A-Z0-9]{2,10}$")
_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def normalize_project_name(name: Optional[str]) -> str:
    v = " ".join((name or "").split())
    if len(v) < MIN_NAME_LENGTH:
        raise ValidationFailed(f"Project name must be at least {MIN_NAME_LENGTH} characters")
    return v


def normalize_project_code(code: str) -> str:
    v = code.strip().upper()
    if not _CODE_RE.match(v):
        raise ValidationFailed(
            "Project code must be 2-10 letters or digits",
            code="invalid_project_code",
            project_code=code,
        )
    return v


def suggest_project_code(name: str) -> str:
    """
    Initials for multi-word names ("Website Redesign" -> WR), the first four
    characters otherwise ("Packaging" -> PACK).
    """
    words = _WORD_RE.findall(name)
    if len(words) >= 2:
        base = "".join(w[0] for w in words)[:3]
    elif words:
        base = words[0][:4]
    else:
        base = ""
    base = base.upper()
    return base if len(base) >= 2 else DEFAULT_CODE


async def _code_taken(db: AsyncSession, company_id: uuid.UUID, code: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    stmt = select(Project.id).where(Project.company_id == company_id, Project.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Project.id != exclude_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def unique_project_code(db: AsyncSession, company_id: uuid.UUID, base: str) -> str:
    """base, then base2, base3, ... until free within the company."""
    code = base
    suffix = 1
    while await _code_taken(db, company_id, code):
        suffix += 1
        tail = str(suffix)
        code = base[: MAX_CODE_LENGTH - len(tail)] + tail
    return code


async def create_project(
    db: AsyncSession,
    company: Company,
    name: str,
    code: Optional[str] = None,
) -> Project:
    name = normalize_project_name(name)
    if code:
        code = normalize_project_code(code)
        if await _code_taken(db, company.id, code):
            raise ValidationFailed("A project with this code already exists", code="duplicate", project_code=code)
    else:
        code = await unique_project_code(db, company.id, suggest_project_code(name))

    project = Project(company_id=company.id, name=name, code=code)
    db.add(project)
    await db.flush()

    logger.info("project %s created company=%s code=%s", project.id, company.id, code)
    return project


async def get_company_project(db: AsyncSession, company_id: uuid.UUID, project_id: uuid.UUID) -> Project:
    project = await db.get(Project, project_id)
    if project is None or project.company_id != company_id:
        raise NotFound("Project not found for this company", project_id=str(project_id))
    return project


async def ticket_counts(db: AsyncSession, company_id: uuid.UUID) -> dict[uuid.UUID, int]:
    stmt = (
        select(Ticket.project_id, func.count(Ticket.id))
        .where(Ticket.company_id == company_id, Ticket.project_id.is_not(None))
        .group_by(Ticket.project_id)
    )
    return {pid: int(n) for pid, n in (await db.execute(stmt)).all()}


async def delete_project(db: AsyncSession, project: Project) -> int:
    """Delete a project, keeping its tickets. Returns how many tickets were unlinked."""
    res = await db.execute(
        update(Ticket).where(Ticket.project_id == project.id).values(project_id=None)
    )
    unlinked = int(res.rowcount or 0)
    await db.delete(project)
    await db.flush()

    logger.info("project %s deleted company=%s unlinked_tickets=%s", project.id, project.company_id, unlinked)
    return unlinked
