from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brandbite.auth.permissions import is_permitted
from brandbite.core.roles import CompanyRole, UserRole, is_creative_role, is_customer_role, is_site_admin_role
from brandbite.core.security import bearer_scheme, decode_access_token
from brandbite.db.session import get_db
from brandbite.models.company import Company, CompanyMember
from brandbite.models.user import UserAccount


@dataclass
class SessionContext:
    """Request-scoped identity: who is calling and for which company."""

    user: UserAccount
    company: Optional[Company] = None
    membership: Optional[CompanyMember] = None

    @property
    def role(self) -> UserRole:
        return UserRole(self.user.role)

    @property
    def company_role(self) -> Optional[CompanyRole]:
        return CompanyRole(self.membership.company_role) if self.membership else None


async def get_current_user(
    credentials=Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> UserAccount:
    """
    Dependency for protected endpoints.
    """
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")

    claims = decode_access_token(credentials.credentials)

    user = await db.get(UserAccount, claims.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive")

    if claims.role != UserRole(user.role).value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Role changed, sign in again")

    return user


async def _resolve_membership(
    db: AsyncSession,
    user: UserAccount,
    x_company_id: Optional[str],
) -> Optional[CompanyMember]:
    if x_company_id:
        try:
            company_uuid = uuid.UUID(x_company_id)
        except ValueError:
            raise HTTPException(
                status_code=422,
                detail="X-Company-Id must be a valid UUID",
            )
        stmt = select(CompanyMember).where(
            CompanyMember.company_id == company_uuid,
            CompanyMember.user_id == user.id,
        )
        membership = (await db.execute(stmt)).scalar_one_or_none()
        if not membership:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You are not a member of this company",
            )
        return membership

    # No header: fall back to the user's only (or oldest) membership
    stmt = (
        select(CompanyMember)
        .where(CompanyMember.user_id == user.id)
        .order_by(CompanyMember.created_at.asc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_session_context(
    x_company_id: Optional[str] = Header(default=None, alias="X-Company-Id"),
    db: AsyncSession = Depends(get_db),
    user: UserAccount = Depends(get_current_user),
) -> SessionContext:
    ctx = SessionContext(user=user)
    if not is_customer_role(user.role):
        return ctx

    membership = await _resolve_membership(db, user, x_company_id)
    if membership is not None:
        ctx.membership = membership
        ctx.company = await db.get(Company, membership.company_id)
    return ctx


async def require_admin(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not is_site_admin_role(ctx.user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return ctx


async def require_creative(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not is_creative_role(ctx.user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only creatives can access this resource")
    return ctx


async def require_customer(ctx: SessionContext = Depends(get_session_context)) -> SessionContext:
    if not is_customer_role(ctx.user.role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only customer accounts can access this resource")
    if ctx.company is None or ctx.membership is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User has no active company")
    return ctx


def require_company_permission(required: str) -> Callable:
    """
    Enforce a company-scoped permission for customers.
    OWNER always passes.
    """

    async def _checker(ctx: SessionContext = Depends(require_customer)) -> SessionContext:
        role = ctx.company_role
        if not is_permitted(role=role, required=required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "company_role_forbidden",
                    "message": "You do not have permission to perform this action.",
                    "required": required,
                    "role": role.value if role else None,
                },
            )
        return ctx

    return _checker
