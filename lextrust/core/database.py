"""Async SQLAlchemy engine, session factory and database client.

The engine is built on first use so that importing models or services never
requires a reachable database; a missing ``DATABASE_URL`` surfaces as a
``ConfigurationError`` at the point where a session is first requested.
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from lextrust.core.config import settings
from lextrust.core.exceptions import ConfigurationError
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it if needed.

    Raises:
        ConfigurationError: If no database URL is configured.
    """
    global _engine
    if _engine is None:
        if not settings.database_url:
            raise ConfigurationError("DATABASE_URL is not configured")
        _engine = create_async_engine(
            settings.database_url,
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.max_overflow,
            echo=settings.db.echo,
            # PgBouncer does not support prepared statement caching
            connect_args={"statement_cache_size": 0},
        )
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the process-wide engine."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _session_maker


class DatabaseClient:
    """PostgreSQL database client for connection and health checks."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine

    async def connect(self) -> bool:
        """Test database connection."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            LOGGER.info("Database connection successful")
            return True
        except Exception:
            LOGGER.error("Database connection failed", exc_info=True)
            raise

    async def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        try:
            await self.engine.dispose()
            LOGGER.info("Database connection closed")
        except Exception as e:
            LOGGER.error(
                "Error closing database connection",
                exc_info=True,
                extra={"error": str(e)}
            )

    async def health_check(self) -> dict:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))
            return {
                "status": "healthy",
                "connected": True,
                "database": "postgresql",
                "latency_test": "passed" if val == 1 else "failed"
            }
        except Exception as e:
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {
                "status": "unhealthy",
                "connected": False,
                "error": str(e),
            }


async def init_database() -> DatabaseClient:
    """Initialize the database connection. The schema is owned by alembic.

    Returns:
        The connected DatabaseClient.
    """
    LOGGER.info("Initializing database connection...")
    client = DatabaseClient(get_engine())
    await client.connect()
    LOGGER.info("Database initialization completed")
    return client


async def close_database() -> None:
    """Dispose of the engine if one was created."""
    global _engine, _session_maker
    if _engine is None:
        return
    LOGGER.info("Closing database connection...")
    await DatabaseClient(_engine).disconnect()
    _engine = None
    _session_maker = None
