"""
Jotter Backend — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   A Database object owns the engine (connection pool) and the session
       factory. create_app() builds exactly one per process and stores it on
       app.state; requests reach it through the get_db_session dependency.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created by the application factory; sessions are per-request.

Architecture Decision:
    The pool is not a module-level global. Keeping it on app.state means
    every app instance (one per test, one per worker process) has its own
    pool, and nothing opens a connection just because a module was imported.

Connection Pooling Strategy:
    PostgreSQL: pool_size + max_overflow from settings, pre-ping, hourly recycle.
    SQLite:     StaticPool (one shared connection) so in-memory databases
                survive across sessions during tests.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from jotter.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic and by
    Database.create_schema().
    """
    pass


def _engine_options(app_settings: Settings) -> dict:
    """Pick pool options that the target dialect actually accepts."""
    if app_settings.database_url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "pool_size": app_settings.db_pool_size,
        "max_overflow": app_settings.db_max_overflow,
        "pool_pre_ping": app_settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


class Database:
    """
    Process-wide owner of the connection pool.

    Constructing the engine does not connect; the first connection is opened
    by the first query. dispose() closes every pooled connection.
    """

    def __init__(self, app_settings: Settings):
        self.engine: AsyncEngine = create_async_engine(
            app_settings.database_url,
            echo=app_settings.log_level == "DEBUG",
            **_engine_options(app_settings),
        )
        # expire_on_commit=False: rows returned by a statement stay readable
        # after the service commits, while the response is being built
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_schema(self) -> None:
        """Create all tables known to Base.metadata (dev/test convenience)."""
        # Model modules register themselves on Base.metadata when imported
        from jotter.models import note  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Run SELECT 1; True when the database answers."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        """Gracefully close all connections in the pool."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the Database built by create_app()."""
    return request.app.state.database


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the app's session factory
        2. Yields it to the route handler (services run and commit statements)
        3. On error: rolls back whatever is left uncommitted
        4. Always: closes the session (returns connection to pool)

    The session does not touch the pool until the first statement runs, so a
    request rejected by the session guard never acquires a connection.
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
