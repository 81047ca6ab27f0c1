"""
Database infrastructure module for managing PostgreSQL connections.

This module provides:
- the async engine (asyncpg) with a bounded connection pool
- a session factory handed to repositories per request
- table creation with retry logic
- health and pool statistics for the health endpoint

Pool exhaustion surfaces as ``sqlalchemy.exc.TimeoutError`` after
``POSTGRES_POOL_TIMEOUT`` seconds, and every statement is cancelled by the
server-side ``command_timeout``; no request waits on the database forever.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from inkwell.core.config.settings import Settings

# Register table models on SQLModel.metadata before create_all.
from inkwell.domain.entities import blog as _blog  # noqa: F401
from inkwell.domain.entities import user as _user  # noqa: F401

logger = structlog.get_logger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG and settings.APP_ENV != "test",
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_recycle=settings.POSTGRES_POOL_RECYCLE,
        pool_pre_ping=True,
        connect_args={
            "timeout": settings.POSTGRES_CONNECT_TIMEOUT_MS / 1000,
            "command_timeout": settings.POSTGRES_STATEMENT_TIMEOUT_MS / 1000,
        },
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((OperationalError, OSError)),
    reraise=True,
)
async def create_db_and_tables(engine: AsyncEngine) -> None:
    """
    Creates database tables with retry logic.

    Raises:
        OperationalError: If the database stays unreachable after all attempts
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("database_tables_created")
    except (OperationalError, OSError) as e:
        logger.warning("database_tables_creation_retry", error=str(e))
        raise


async def check_database_health(engine: AsyncEngine) -> None:
    """Run ``SELECT 1``; any failure propagates to the caller."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


def pool_stats(engine: AsyncEngine) -> dict[str, Any]:
    pool = engine.sync_engine.pool
    return {
        "size": pool.size(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }


@asynccontextmanager
async def session_scope(factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Yield a session that is rolled back on error and always closed."""
    async with factory() as session:
        try:
            yield session
        except Exception as e:
            logger.error("database_session_error", error=str(e))
            await session.rollback()
            raise
