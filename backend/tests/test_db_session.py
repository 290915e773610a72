from __future__ import annotations

from brandbite.db.session import engine_options


def test_sqlite_skips_server_pool_options():
    options = engine_options("sqlite+aiosqlite:///./brandbite.db")
    assert "pool_pre_ping" not in options
    assert "pool_recycle" not in options


def test_postgres_pings_and_recycles_connections():
    options = engine_options("postgresql+asyncpg://user:pw@db.internal:5432/brandbite")
    assert options["pool_pre_ping"] is True
    assert options["pool_recycle"] == 300
