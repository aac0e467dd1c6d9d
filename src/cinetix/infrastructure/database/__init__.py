"""
Database Infrastructure
=======================

Process-wide async engine and session factory for the CineTix Postgres
database (support tickets, organizations, platform settings and the
escalation ledger).

Request handlers get a session through `get_session`; everything that
lives outside a request (the escalation job, countdown streams, the
database ledger) opens short sessions through `get_session_context`.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from cinetix.config import settings


class Base(DeclarativeBase):
    """Declarative base for the SLA service's ORM models."""


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(overrides: Dict[str, Any]) -> Dict[str, Any]:
    options = {
        "echo": settings.debug,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
    }
    options.update(overrides)
    return options


def init_database(database_url: Optional[str] = None, **engine_options: Any) -> AsyncEngine:
    """
    Create the engine and session factory. Called once at startup.

    Args:
        database_url: Connection URL, defaults to settings.database_url
        **engine_options: Overrides for the pool settings taken from config

    Returns:
        AsyncEngine: The new engine
    """
    global _engine, _session_maker

    # asyncpg spells libpq's sslmode= as ssl=
    url = (database_url or settings.database_url).replace("sslmode=", "ssl=")

    _engine = create_async_engine(url, **_engine_options(engine_options))
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


async def close_database() -> None:
    """Dispose of pooled connections and forget the engine."""
    global _engine, _session_maker

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_maker = None


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a session that commits on success and rolls back on error.

    The pooled connection is returned as soon as the block exits, so keep
    the block short:

        async with get_session_context() as session:
            ticket = await SQLAlchemySupportTicketRepository(session).get_by_id(ticket_id)
    """
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    async with _session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with get_session_context() as session:
        yield session


async def create_tables() -> None:
    """
    Create missing tables.

    The platform tables are owned by CineTix migrations; in practice this
    only creates sla_escalations.
    """
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
