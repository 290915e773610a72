# backend/brandbite/api/v1/auth.py
from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.api.deps.session import SessionContext, get_session_context
from brandbite.core.config import settings
from brandbite.core.roles import format_role
from brandbite.core.security import create_access_token
from brandbite.db.session import get_db
from brandbite.db.types import utcnow
from brandbite.models.company import Company, CompanyMember
from brandbite.models.user import UserAccount
from brandbite.schemas.auth import MagicCodeRequest, MagicCodeVerify, MembershipOut, MeResponse, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MAGIC_CODE_EXPIRY_MINUTES = 10


def _should_return_magic_code_in_response() -> bool:
    """Never echo the code outside development."""
    return (settings.ENVIRONMENT or "").strip().lower() not in {"staging", "production"}


async def purge_expired_magic_codes(db: AsyncSession) -> None:
    """
    Clear all expired magic codes globally.
    """
    stmt = (
        update(UserAccount)
        .where(UserAccount.magic_code_expires_at.is_not(None))
        .where(UserAccount.magic_code_expires_at < utcnow())
        .values(magic_code=None, magic_code_expires_at=None)
    )
    await db.execute(stmt)


@router.post("/request-code")
async def request_code(payload: MagicCodeRequest, db: AsyncSession = Depends(get_db)):
    """
    Body: {"email": "user@example.com"}
    Generates a magic code (stored on the account). New emails get a CUSTOMER account.
    """
    email = UserAccount.normalize_email(payload.email)

    await purge_expired_magic_codes(db)

    res = await db.execute(select(UserAccount).where(UserAccount.email == email))
    user = res.scalar_one_or_none()

    if user is None:
        user = UserAccount(email=email, is_active=True)
        db.add(user)
        await db.flush()
        logger.info("account created via magic code email=%s", email)

    code = str(secrets.randbelow(900000) + 100000)  # 6 digits
    user.magic_code = code
    user.magic_code_expires_at = utcnow() + timedelta(minutes=MAGIC_CODE_EXPIRY_MINUTES)

    await db.commit()

    resp = {"status": "ok", "expires_in_minutes": MAGIC_CODE_EXPIRY_MINUTES}
    if _should_return_magic_code_in_response():
        resp["code"] = code
    return resp


@router.post("/verify-code", response_model=TokenResponse)
async def verify_code(payload: MagicCodeVerify, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    email = UserAccount.normalize_email(payload.email)
    code = payload.code.strip()

    if not code:
        raise HTTPException(status_code=400, detail="code is required")

    await purge_expired_magic_codes(db)

    res = await db.execute(select(UserAccount).where(UserAccount.email == email))
    user = res.scalar_one_or_none()

    if not user or not user.magic_code or not user.magic_code_expires_at:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if not secrets.compare_digest(user.magic_code, code):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid code")

    if user.magic_code_expires_at < utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Code expired")

    # One-time use
    user.magic_code = None
    user.magic_code_expires_at = None
    await db.commit()

    return TokenResponse(access_token=create_access_token(subject=str(user.id), role=user.role))


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    ctx: SessionContext = Depends(get_session_context),
) -> MeResponse:
    """
    Current identity, active company and all memberships.
    """
    stmt = (
        select(CompanyMember, Company)
        .join(Company, Company.id == CompanyMember.company_id)
        .where(CompanyMember.user_id == ctx.user.id)
        .order_by(CompanyMember.created_at.asc())
    )
    memberships = [
        MembershipOut(company_id=c.id, company_name=c.name, company_role=m.company_role)
        for m, c in (await db.execute(stmt)).all()
    ]

    return MeResponse(
        id=ctx.user.id,
        email=ctx.user.email,
        name=ctx.user.name,
        role=ctx.user.role,
        role_label=format_role(ctx.user.role),
        is_active=ctx.user.is_active,
        active_company_id=ctx.company.id if ctx.company else None,
        company_role=ctx.company_role,
        memberships=memberships,
    )
