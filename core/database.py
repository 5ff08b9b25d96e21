"""Async SQLAlchemy gateway with lazy, single-flight initialisation.

Provides the one connection pool shared by every request:
- Engine created on first use, guarded by an asyncio.Lock so concurrent
  first callers share a single engine
- Reachability probe (``SELECT 1``) before the engine is cached
- FastAPI dependency injection via get_session()
- Explicit teardown via close_db()
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings
from core.errors import DatabaseConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Process-scoped state
# ---------------------------------------------------------------------------

_database_url: str | None = settings.database.url
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_init_lock = asyncio.Lock()


def configure_database(url: str) -> None:
    """Point the gateway at ``url``. Only allowed before the engine exists."""
    global _database_url
    if _engine is not None:
        raise DatabaseConfigurationError(
            "Database already initialised; call close_db() first"
        )
    _database_url = url


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": settings.database.echo, "pool_pre_ping": True}
    # SQLite (tests, local dev) runs on a single-connection pool
    if make_url(url).get_backend_name() != "sqlite":
        kwargs["pool_size"] = settings.database.pool_size
        kwargs["max_overflow"] = settings.database.max_overflow
    return kwargs


async def get_engine() -> AsyncEngine:
    """Return the cached engine, creating and probing it on first use."""
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    async with _init_lock:
        if _engine is not None:
            return _engine

        if not _database_url:
            raise DatabaseConfigurationError(
                "DATABASE_URL is not set; the API cannot serve requests"
            )

        engine = create_async_engine(_database_url, **_engine_kwargs(_database_url))
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            await engine.dispose()
            logger.error("Database unreachable: %s", exc)
            raise DatabaseConfigurationError("Database unreachable") from exc

        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        _engine = engine
        logger.info("Database engine created (%s)", engine.url.get_backend_name())
        return _engine


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    await get_engine()
    return _session_factory


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session with automatic commit/rollback.

    Usage in FastAPI routes::

        @router.get("/items")
        async def list_items(session: AsyncSession = Depends(get_session)):
            result = await session.execute(select(Item))
            return result.scalars().all()
    """
    factory = await get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager variant for non-FastAPI code (scripts, tests, etc.)."""
    factory = await get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ---------------------------------------------------------------------------
# Lifecycle hooks
# ---------------------------------------------------------------------------

async def init_db() -> None:
    """Create tables from models (dev/test only)."""
    from core.models.base import Base
    import bookstore.models.db_models  # noqa: F401

    engine = await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping() -> bool:
    """Return True when the store answers ``SELECT 1``."""
    try:
        engine = await get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.warning("Database ping failed: %s", exc)
        return False


async def close_db() -> None:
    """Dispose of the connection pool on shutdown."""
    global _engine, _session_factory

    async with _init_lock:
        if _engine is None:
            return
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine disposed")
