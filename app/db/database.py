"""
app/db/database.py

Purpose: Relational database setup (SQLAlchemy async)

- Creates the async engine and session factory
- Creates tables on startup (idempotent)
- Health checks and retry logic on connect
- Proper connection lifecycle management
"""

import asyncio
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.logging import get_logger
from app.db.base import Base

logger = get_logger(__name__)


class Database:
    """
    Owns one async engine and the session factory built on it.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        engine_kwargs = {"echo": echo, "future": True}

        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url.rstrip("/").endswith("aiosqlite:"):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=3600,
                pool_pre_ping=True,
            )

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    def session(self) -> AsyncSession:
        return self.session_factory()

    async def create_tables(self):
        # Model modules register themselves on Base.metadata at import time
        from app.models import user, session, customer_subscription, transaction, message_log  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_health(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    async def dispose(self):
        await self.engine.dispose()


# Global database instance
_database: Optional[Database] = None


async def connect_to_database(url: Optional[str] = None) -> Database:
    """
    Creates the engine, verifies connectivity with retry logic and creates tables.
    Called during application startup.
    """
    global _database

    if _database is not None:
        logger.warning("Database already initialized")
        return _database

    max_retries = 3
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(f"Attempting to connect to database (attempt {attempt}/{max_retries})")

            database = Database(url or settings.DATABASE_URL, echo=settings.DEBUG)
            await database.create_tables()

            _database = database
            logger.info("✅ Successfully connected to database")
            return _database

        except OperationalError as e:
            logger.error(f"Failed to connect to database (attempt {attempt}/{max_retries}): {e}")

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to database after all retries")
                raise ConnectionError("Could not establish database connection") from e


async def close_database_connection():
    """
    Disposes the engine.
    Called during application shutdown.
    """
    global _database

    if _database:
        logger.info("Closing database connection")
        await _database.dispose()
        _database = None
        logger.info("Database connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.
    """
    if _database is None:
        logger.error("Database not initialized")
        return False
    return await _database.check_health()
