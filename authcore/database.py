"""Database configuration and session management."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from authcore.exceptions import StorageError

logger = logging.getLogger(__name__)


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def create_db_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for the given URL.

    Plain ``postgresql://`` URLs are switched to the asyncpg driver.
    """
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    if database_url.startswith("postgresql+asyncpg://"):
        return create_async_engine(
            database_url,
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20,
            pool_recycle=3600,  # Recycle connections after 1 hour
            isolation_level="READ COMMITTED",
            connect_args={
                "server_settings": {"lock_timeout": "5000"}  # 5s lock timeout to prevent indefinite waits
            },
        )

    # SQLite: wait on a locked database instead of failing immediately
    return create_async_engine(database_url, connect_args={"timeout": 30})


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used for every unit of work."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,  # Returned users stay readable after commit
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all database tables."""
    # Import models so they are registered with Base.metadata
    from authcore import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Run a block inside one transaction.

    Commits when the block finishes, rolls back when it raises. Database
    failures come out as ``StorageError``; nothing is retried here.

    Example:
        async with unit_of_work(session_factory) as db:
            user = await UserRepository(db).get_by_username("alice")
    """
    try:
        async with session_factory.begin() as db:
            yield db
    except SQLAlchemyError as e:
        logger.error(f"Transaction failed, rolled back: {e}")
        raise StorageError(str(e)) from e
