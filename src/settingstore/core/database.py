"""
Database connection and session management for settingstore.

Provides the declarative base, a lazily created async engine and session
factory, and helpers to create tables and check connectivity.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import get_settings_instance
from .exceptions import DatabaseConnectionError, DatabaseSessionError
from .logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()

# Global async engine and session factory - lazy initialization
_async_engine = None
_AsyncSessionLocal = None


def _safe_url(database_url: str) -> str:
    """Strip credentials from a database URL for logging."""
    return database_url.split("@", 1)[1] if "@" in database_url else database_url


def get_async_engine():
    global _async_engine
    if _async_engine is None:
        settings = get_settings_instance()
        database_url = settings.database_url
        if not database_url:
            raise DatabaseConnectionError("SETTINGSTORE_DATABASE_URL is not set")
        logger.debug(f"Database configuration: {_safe_url(database_url)}")

        engine_kwargs = {"pool_pre_ping": True, "echo": False}
        # SQLite uses a static/null pool; pool sizing options don't apply
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_timeout=settings.database_pool_timeout,
                pool_recycle=settings.database_pool_recycle,
            )

        try:
            _async_engine = create_async_engine(database_url, **engine_kwargs)
        except Exception as e:
            logger.error(f"Failed to create async database engine: {e}")
            raise DatabaseConnectionError(f"engine creation: {e}") from e
    return _async_engine


def get_async_session_local():
    global _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        try:
            _AsyncSessionLocal = async_sessionmaker(
                bind=get_async_engine(),
                expire_on_commit=False,
                autoflush=False,
                class_=AsyncSession,
            )
        except DatabaseConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to create async session factory: {e}")
            raise DatabaseSessionError(f"session factory creation: {e}") from e
    return _AsyncSessionLocal


def get_db_session() -> AsyncSession:
    """Get a database session for background tasks. Caller closes it."""
    return get_async_session_local()()


async def init_db() -> None:
    """Create all tables registered on Base.metadata."""
    # Ensure models are imported so Base.metadata has all tables
    from ..models import Setting  # noqa: F401

    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized successfully")


async def close_db() -> None:
    global _async_engine, _AsyncSessionLocal
    if _async_engine is None:
        return
    await _async_engine.dispose()
    _async_engine = None
    _AsyncSessionLocal = None
    logger.debug("Database connections closed")


async def check_db_connection() -> bool:
    """Check if database connection is working."""
    try:
        engine = get_async_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
