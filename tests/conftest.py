"""Shared test fixtures for the ghost content store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ghostcontent.config import Settings
from ghostcontent.database import create_engine, ensure_tables
from ghostcontent.main import create_app, register_folders
from ghostcontent.services.ghost_service import DurableGhostStore, create_ghost_store
from ghostcontent.services.transparent_service import TransparentGhostStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

TEST_API_TOKEN = "test-api-token-with-at-least-32-characters"


@asynccontextmanager
async def create_test_client(settings: Settings) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    Manually performs the work of the application lifespan (DB, ghost store,
    folder registration) because ASGITransport does not trigger it.
    """
    app = create_app(settings)
    settings.validate_runtime_security()

    engine, session_factory = create_engine(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.settings = settings
    await ensure_tables(engine)

    store = create_ghost_store(settings, session_factory)
    app.state.ghost_store = store
    await register_folders(store, settings.ghost_folders)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await engine.dispose()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a temporary project directory with an empty flows folder."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "flows").mkdir()
    return project


@pytest.fixture
def flows_dir(project_dir: Path) -> Path:
    return project_dir / "flows"


@pytest.fixture
def test_settings(project_dir: Path, tmp_path: Path) -> Settings:
    """Create test settings with temporary paths."""
    db_path = tmp_path / "test.db"
    return Settings(
        _env_file=None,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        project_dir=project_dir,
        ghost_folders={"flows": "**/*.json"},
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test database engine with the ghost tables."""
    engine, _session_factory = create_engine(test_settings)
    await ensure_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(
    session_factory: async_sessionmaker[AsyncSession], project_dir: Path
) -> DurableGhostStore:
    """Durable ghost store over the test database."""
    return DurableGhostStore(session_factory=session_factory, project_dir=project_dir)


@pytest.fixture
def transparent_store(project_dir: Path) -> TransparentGhostStore:
    return TransparentGhostStore(project_dir=project_dir)
