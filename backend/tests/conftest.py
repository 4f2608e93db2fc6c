"""
CodeSnippet Manager Backend: Test Configuration (conftest.py)
==============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── db_engine: Async engine on a fresh SQLite file under tmp_path, schema created
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── count_rows: Helper counting committed rows in a table
    ├── db_session: One AsyncSession from session_factory
    ├── mock_db_session: AsyncMock session for failure injection (no DB)
    ├── make_snippet: Helper that creates a snippet through the repository
    └── test_client: HTTPX AsyncClient wired to the app, sessions from session_factory
"""

import os
import tempfile

# Must be set before any snippet_manager import so the module-level
# settings/engine never point at a developer database
os.environ["DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{tempfile.mkdtemp(prefix='snippets_test_')}/health.db"
)
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippet_manager.database import build_engine, create_tables
from snippet_manager.services.snippet_repository import SnippetRepository


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    Provides an engine on an empty, fully migrated SQLite database.

    Each test gets its own file so no state leaks between tests.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'snippets.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def count_rows(session_factory):
    """
    Returns an async helper: SELECT count(*) FROM table [WHERE criteria],
    run in a fresh session so it only sees committed rows.

    Usage:
        assert await count_rows(Tag.__table__, Tag.name == "array") == 1
    """
    async def _count(table, *criteria) -> int:
        query = select(func.count()).select_from(table)
        if criteria:
            query = query.where(*criteria)
        async with session_factory() as session:
            return (await session.execute(query)).scalar_one()

    return _count


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(PersistenceError):
            await query_service.list_snippets(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_snippet(session_factory):
    """
    Returns an async helper creating a committed snippet in its own session.

    Usage:
        record = await make_snippet("Loop", tags=["python"])
    """
    repository = SnippetRepository()

    async def _make(title, code="print('hi')", language=None, tags=None):
        async with session_factory() as session:
            return await repository.create_snippet(
                session, title=title, code=code, language=language, tags=tags,
            )

    return _make


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    Provides an async HTTP test client for endpoint testing.

    get_db_session is overridden so requests run against the per-test
    database instead of the module-level engine.

    Usage:
        async def test_languages(test_client):
            response = await test_client.get("/api/languages")
            assert response.status_code == 200
    """
    from snippet_manager.database import get_db_session
    from snippet_manager.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
