"""
Database Engine and Sessions.

The engine is created on first use, not at import, so modules that import
this one still load when config/.env is absent (tests, `cli.py --service info`).

Two ways to get a session:
    get_db_session()   FastAPI dependency, one session per request
    session_scope()    async context manager for the CLI and scripts
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from botbuilder.backend.core.logging import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Create the engine from database.yaml and DB_PASSWORD on first call."""
    global _engine
    if _engine is None:
        from botbuilder.backend.core.config import get_app_config, get_database_url

        db_config = get_app_config().database
        _engine = create_async_engine(
            get_database_url(),
            pool_size=db_config.pool_size,
            max_overflow=db_config.max_overflow,
            pool_timeout=db_config.pool_timeout,
            pool_recycle=db_config.pool_recycle,
            echo=db_config.echo,
        )
        logger.debug("Database engine created", extra={"host": db_config.host, "db": db_config.name})
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Session committed on normal exit and rolled back on error.

    Usage:
        async with session_scope() as session:
            await BotService(session, transport).register_webhooks()
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: the request's session, committed after the handler returns.

    Usage in endpoints:
        async def get_bot(bot_id: str, db: DbSession): ...
    """
    async with session_scope() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections. Called on application and CLI shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.debug("Database engine disposed")
    _engine = None
    _session_factory = None
