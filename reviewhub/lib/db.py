"""
Database engine and session management using SQLAlchemy 2.x (asyncio).
Each platform fetch opens its own AsyncSession, so concurrent fetches of one
inbox call never share a session.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from reviewhub.lib.settings import settings


# Base class for all SQLAlchemy models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def create_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create an async engine.

    Args:
        database_url: Connection string (default: settings.database_url)
        echo: Log SQL statements (default: settings.debug)
    """
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug if echo is None else echo,
        pool_pre_ping=True,  # Verify connections before using
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


@asynccontextmanager
async def get_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    Usage:
        async with get_session(factory) as session:
            result = await session.execute(select(GoogleReview))
    """
    session = session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize the database by creating all tables.
    Imports the models package so every table is registered with Base.metadata.
    """
    import reviewhub.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    """
    Drop all tables. Use with caution - for testing only.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
