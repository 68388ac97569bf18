"""
Pytest configuration and fixtures
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import AsyncGenerator

from api import dependencies
from api.dependencies import get_db, get_dispatcher, get_invalidator
from api.main import app
from core.config import settings
from core.database import create_engine_for
from core.security import issue_session_token
from models import Base, Project, ChecklistTemplate
from models.base import ProjectPhase

TEST_API_KEY = "test-api-key"
TEST_PASSWORD = "correct horse battery staple"


class RecordingInvalidator:
    """Stands in for PageCacheInvalidator; remembers which paths were invalidated."""

    def __init__(self):
        self.paths = []

    async def invalidate(self, path: str) -> bool:
        self.paths.append(path)
        return True


class RecordingDispatcher:
    """Stands in for ResearchDispatcher; remembers dispatched job ids."""

    def __init__(self):
        self.job_ids = []

    async def dispatch(self, job) -> bool:
        self.job_ids.append(job.id)
        return True


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Known credentials and a clean login limiter for every test"""
    monkeypatch.setattr(settings, "API_KEY", TEST_API_KEY)
    monkeypatch.setattr(settings, "DASHBOARD_PASSWORD", TEST_PASSWORD)
    monkeypatch.setattr(settings, "SESSION_SECRET", "test-session-secret")
    dependencies.login_rate_limiter.reset()
    yield
    dependencies.login_rate_limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """SQLite database file per test, with every table created"""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'mission_control_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def invalidator():
    return RecordingInvalidator()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def client(session_maker, invalidator, dispatcher):
    """HTTP client against the app, with a fresh session per request"""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_invalidator] = lambda: invalidator
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"x-api-key": TEST_API_KEY}


@pytest.fixture
def session_headers():
    return {"cookie": f"{settings.SESSION_COOKIE_NAME}={issue_session_token()}"}


@pytest_asyncio.fixture
async def build_project(db_session):
    """A project in the build phase"""
    project = Project(name="Mission Control", phase=ProjectPhase.BUILD)
    db_session.add(project)
    await db_session.commit()
    return project


@pytest_asyncio.fixture
async def checklist_templates(db_session):
    """Three build-phase and two live-phase templates"""
    templates = [
        ChecklistTemplate(phase=ProjectPhase.BUILD, item_order=1, title="Define MVP scope"),
        ChecklistTemplate(phase=ProjectPhase.BUILD, item_order=2, title="Set up CI"),
        ChecklistTemplate(phase=ProjectPhase.BUILD, item_order=3, title="Deploy staging"),
        ChecklistTemplate(phase=ProjectPhase.LIVE, item_order=1, title="Configure monitoring"),
        ChecklistTemplate(phase=ProjectPhase.LIVE, item_order=2, title="Announce launch"),
    ]
    db_session.add_all(templates)
    await db_session.commit()
    return templates
