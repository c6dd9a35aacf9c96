"""
Database Session Management with Connection Pooling

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Key Features:
- Database abstraction: Easy to switch between SQLite, PostgreSQL, etc.
- Connection pooling: Configured per database type
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions

Request handlers get a session through get_session(). Work that outlives
the request (visit dispatch) opens its own session from async_session_maker.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from linkpulse.core.setting import settings
from linkpulse.db.sqlite_adapter import get_database_adapter

# The adapter handles all database-specific configuration
db_adapter = get_database_adapter(settings.DATABASE_URL)

engine = db_adapter.create_engine(
    settings.DATABASE_URL
)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    """
    Create an async session factory for an engine.

    Sessions keep loaded objects usable after commit, so services can
    return rows they just wrote.
    """
    return async_sessionmaker(
        bind,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async_session_maker = build_session_maker(engine)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """
    Create any missing tables.

    Used on startup for local SQLite databases; deployed databases are
    managed with the Alembic revisions in migrations/.
    """
    # Import models so they register on SQLModel.metadata
    from linkpulse.db import models  # noqa: F401

    async with bind.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session from the pool
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception
    - Closes session automatically (context manager handles it)

    Usage in FastAPI:
        @router.get("/endpoint")
        async def endpoint(session: AsyncSession = Depends(get_session)):
            # Use session here
            pass
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()  # Commit transaction on successful completion
        except Exception:
            await session.rollback()  # Rollback on any exception
            raise
