from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from brandbite.db.session import get_db, make_engine, make_sessionmaker

# Ensure Base + models are registered before create_all
from brandbite.db.base import Base
import brandbite.models  # noqa: F401

from brandbite.core import ledger
from brandbite.core.enums import LedgerReason, TicketPriority, TicketStatus
from brandbite.core.pricing import price_job_type
from brandbite.core.roles import CompanyRole, UserRole
from brandbite.core.security import create_access_token
from brandbite.core.tickets import next_company_ticket_number
from brandbite.models.company import Company, CompanyMember
from brandbite.models.job_type import JobType
from brandbite.models.payout_tier import PayoutTier
from brandbite.models.plan import Plan
from brandbite.models.project import Project
from brandbite.models.ticket import Ticket
from brandbite.models.user import UserAccount


# ---------------------------------------------------------
# Engine: one throwaway SQLite file per test
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'brandbite_test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def sessionmaker(engine):
    return make_sessionmaker(engine)


# ---------------------------------------------------------
# DB session for assertions / setup
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def db(sessionmaker):
    """
    Session for test setup & assertions ONLY.
    Setup helpers commit so the app's own sessions can see the rows.
    """
    async with sessionmaker() as session:
        yield session
        await session.rollback()


# ---------------------------------------------------------
# FastAPI app + dependency override
# ---------------------------------------------------------
@pytest.fixture()
def app(sessionmaker):
    from brandbite.main import app as fastapi_app

    async def _override_get_db():
        async with sessionmaker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------
# HTTP client
# ---------------------------------------------------------
@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------
# Seed data
# ---------------------------------------------------------
def auth_headers(user: UserAccount, company: Optional[Company] = None) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {create_access_token(subject=str(user.id), role=user.role)}"}
    if company is not None:
        headers["X-Company-Id"] = str(company.id)
    return headers


class Seed:
    """Row builders for tests. Every helper commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def user(self, role: UserRole = UserRole.CUSTOMER, email: Optional[str] = None, **kwargs) -> UserAccount:
        email = email or f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@example.com"
        return await self._save(UserAccount(email=email, role=role, is_active=True, **kwargs))

    async def admin(self) -> UserAccount:
        return await self.user(UserRole.SITE_ADMIN)

    async def creative(self, **kwargs) -> UserAccount:
        return await self.user(UserRole.DESIGNER, **kwargs)

    async def credit(self, owner, amount: int, reason: LedgerReason = LedgerReason.ADMIN_ADJUSTMENT):
        """Balances only ever move through the ledger."""
        entry = await ledger.credit(self.db, owner, amount, reason)
        await self.db.commit()
        return entry

    async def company(self, tokens: int = 0, auto_assign_enabled: bool = True) -> Company:
        slug = f"co-{uuid.uuid4().hex[:8]}"
        company = await self._save(Company(name=slug.upper(), slug=slug, auto_assign_enabled=auto_assign_enabled))
        if tokens:
            await self.credit(company, tokens, LedgerReason.PLAN_PURCHASE)
        return company

    async def membership(self, company: Company, user: UserAccount, company_role: CompanyRole) -> CompanyMember:
        return await self._save(CompanyMember(company_id=company.id, user_id=user.id, company_role=company_role))

    async def member(self, company: Company, company_role: CompanyRole = CompanyRole.OWNER) -> UserAccount:
        user = await self.user(UserRole.CUSTOMER)
        await self.membership(company, user, company_role)
        return user

    async def plan(self, name: str = "Starter", monthly_tokens: int = 100, is_active: bool = True) -> Plan:
        return await self._save(Plan(name=name, monthly_tokens=monthly_tokens, is_active=is_active))

    async def project(self, company: Company, code: Optional[str] = "WEB") -> Project:
        return await self._save(Project(company_id=company.id, name=f"Project {code}", code=code))

    async def job_type(self, estimated_hours: int = 10, is_active: bool = True) -> JobType:
        cost, payout = price_job_type(estimated_hours)
        return await self._save(
            JobType(
                name=f"Job {uuid.uuid4().hex[:6]}",
                estimated_hours=estimated_hours,
                token_cost=cost,
                creative_payout_tokens=payout,
                is_active=is_active,
            )
        )

    async def ticket(
        self,
        company: Company,
        *,
        creative: Optional[UserAccount] = None,
        job_type: Optional[JobType] = None,
        status: TicketStatus = TicketStatus.TODO,
        priority: TicketPriority = TicketPriority.MEDIUM,
        quantity: int = 1,
        completed_at: Optional[datetime] = None,
    ) -> Ticket:
        """Inserted directly: no intake debit, no auto-assignment."""
        number = await next_company_ticket_number(self.db, company.id)
        return await self._save(
            Ticket(
                company_id=company.id,
                creative_id=creative.id if creative else None,
                job_type_id=job_type.id if job_type else None,
                title=f"Ticket {number}",
                status=status,
                priority=priority,
                quantity=quantity,
                company_ticket_number=number,
                completed_at=completed_at,
            )
        )

    async def tier(self, name: str, min_completed_tickets: int, payout_percent: int, time_window_days: int = 30, **kwargs) -> PayoutTier:
        return await self._save(
            PayoutTier(
                name=name,
                min_completed_tickets=min_completed_tickets,
                time_window_days=time_window_days,
                payout_percent=payout_percent,
                **kwargs,
            )
        )


@pytest.fixture()
def seed(db) -> Seed:
    return Seed(db)


@pytest.fixture()
def headers_for():
    return auth_headers
