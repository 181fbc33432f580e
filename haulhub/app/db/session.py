"""
Database session configuration.

PostgreSQL (asyncpg) in deployment. A sqlite+aiosqlite URL is accepted for
local runs; SQLite gets foreign keys switched on so ON DELETE SET NULL on
trips behaves as it does on PostgreSQL.
"""

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from haulhub.app.core.config import settings


def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    Pool sizing only applies to server databases; SQLite engines get the
    foreign key pragma instead.
    """
    if make_url(database_url).get_backend_name() == "sqlite":
        sqlite_engine = create_async_engine(database_url, echo=settings.db_echo, **kwargs)
        event.listen(sqlite_engine.sync_engine, "connect", enable_sqlite_foreign_keys)
        return sqlite_engine

    return create_async_engine(
        database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        **kwargs
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    # Objects stay readable after commit; services refresh what they return
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url)
AsyncSessionLocal = build_session_factory(engine)

# Create declarative base for models
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session. Anything left uncommitted when the
    request fails is rolled back before the session is closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
