"""
CodeSnippet Manager Backend: Database Session Management
=========================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   Creates an async engine (pooled for server databases, foreign keys
       switched on for SQLite), provides a session dependency that commits
       on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the test suite, which builds its own engine with `build_engine()`.
When:  Engine is created at module import; sessions are created per-request.

Connection Strategy:
    SQLite (default, aiosqlite driver):
        - No pool sizing arguments (SQLAlchemy picks the pool class)
        - PRAGMA foreign_keys=ON on every new DBAPI connection, otherwise
          SQLite silently ignores ON DELETE CASCADE
    PostgreSQL (asyncpg driver):
        pool_size / max_overflow / pool_pre_ping from settings
        pool_recycle=3600 to drop long-lived connections
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from snippet_manager.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine configured for the target database.

    What:    Single place where engine options are decided per dialect.
    Who:     Module-level `engine` below, and test fixtures that need an
             isolated database.

    Args:
        database_url: Async SQLAlchemy URL (sqlite+aiosqlite or postgresql+asyncpg)
        echo: Log every SQL statement (enabled when log_level is DEBUG)
    """
    if database_url.startswith("sqlite"):
        async_engine = create_async_engine(database_url, echo=echo)
        event.listen(async_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return async_engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


# ── Engine Configuration ──────────────────────────────────────────────────
engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, which the
# repository relies on when it builds the response record post-commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with `Base.metadata`, which `create_tables()`
    uses to build the schema on startup.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    The repository commits its own unit of work explicitly; the commit here
    is a no-op in that case and only matters for handlers that write
    without a repository.

    Example usage in a route:
        @router.get("/snippets")
        async def list_snippets(db: AsyncSession = Depends(get_db_session)):
            return await query_service.list_snippets(db)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables(target: AsyncEngine = engine) -> None:
    """
    What:  Creates any missing tables and indexes (CREATE TABLE IF NOT EXISTS).
    When:  Application startup, when settings.create_tables_on_startup is set;
           test fixtures call it against their own engine.
    """
    # Models must be imported so they are registered on Base.metadata
    from snippet_manager.models import snippet  # noqa: F401

    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
