from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from brandbite.core.config import settings


def engine_options(url: str) -> dict[str, Any]:
    """
    Pool settings per backend. SQLite (local dev, tests) is a file with no
    server to drop connections, so it skips pre-ping and recycling.
    """
    options: dict[str, Any] = {"echo": settings.SQL_ECHO, "future": True}
    if make_url(url).get_backend_name() != "sqlite":
        options.update(pool_pre_ping=True, pool_recycle=300)
    return options


def make_engine(url: str, **overrides: Any) -> AsyncEngine:
    return create_async_engine(url, **{**engine_options(url), **overrides})


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # ledger and board services flush explicitly and the endpoint commits once
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


# -----------------------------
# Async engine (FastAPI)
# -----------------------------
# CLEAN URL: asyncpg rejects sslmode/channel_binding query params.
engine: AsyncEngine = make_engine(settings.DATABASE_URL_ASYNC_CLEAN)

AsyncSessionLocal = make_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One AsyncSession per request. Handlers commit once; a handler that
    raises leaves nothing behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
