# backend/ticketdesk/db/database.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from typing import AsyncGenerator

from ticketdesk.core.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine; pool sizing only applies to server databases"""
    url = database_url.replace("postgresql://", "postgresql+asyncpg://")

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.DEBUG, connect_args={"timeout": 30})

    return create_async_engine(
        url,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings.DATABASE_URL)

# Create async session factory
async_session_local = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with async_session_local() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Initialize database (create tables)"""
    from ticketdesk.db.base import Base

    async with engine.begin() as conn:
        # Import all models to ensure they're registered
        from ticketdesk.db import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connections"""
    await engine.dispose()


async def end_unchanged(session: AsyncSession) -> None:
    """
    Close a transaction whose guarded write matched no rows.

    Sessions are built with expire_on_commit=False, so committing leaves
    the caller's loaded instances intact; a rollback would expire them.
    """
    await session.commit()
