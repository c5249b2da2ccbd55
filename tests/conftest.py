"""
Shared test fixtures — async DB, hasher, gateway, FastAPI test client.
"""

import os

os.environ.setdefault("PEPPER", "test-pepper")

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

from cyoa_stats.config import settings
from cyoa_stats.database import Base, build_engine, get_db, init_db
from cyoa_stats.deps import get_hasher
from cyoa_stats.main import app
from cyoa_stats.models.log_entry import LogEntry
from cyoa_stats.services.gateway import QueryGateway
from cyoa_stats.services.hasher import Hasher

TEST_PEPPER = "test-pepper"


# ── Test Database (SQLite in-memory) ────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture()
async def db_engine():
    engine = build_engine(TEST_DB_URL, poolclass=StaticPool)
    await init_db(engine)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hasher():
    return Hasher(TEST_PEPPER)


@pytest.fixture
def gateway(db_session):
    return QueryGateway(db_session)


@pytest_asyncio.fixture()
async def client(session_factory, hasher):
    """FastAPI test client with test DB and hasher injected."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_hasher] = lambda: hasher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def count_logs(session_factory):
    """Count stored log rows with a fresh session (optionally per project)."""

    async def _count(project_id: str | None = None) -> int:
        stmt = select(func.count()).select_from(LogEntry)
        if project_id:
            stmt = stmt.where(LogEntry.project_id == project_id)
        async with session_factory() as session:
            return (await session.execute(stmt)).scalar_one()

    return _count


@pytest.fixture
def mock_mailer():
    with patch(
        "cyoa_stats.routes.registration.send_email",
        new_callable=AsyncMock,
        return_value={"success": True, "message": "Email sent"},
    ) as m:
        yield m


@pytest.fixture
def admin_enabled(monkeypatch):
    monkeypatch.setattr(settings, "admin_enabled", True)


# ── Sample Beacon Data ──────────────────────────────────

SAMPLE_EVENT = {
    "eventType": "quit",
    "version": "0.0.1",
    "projectHash": -1289374,
    "selectedChoices": ["intro", "sword", "castle"],
    "timeOnPage": 183000,
    "timestamp": "2026-10-19T09:30:00.000Z",
    "screenResolution": "1920x1080",
    "viewportSize": "1280x720",
    "referrer": "https://reddit.com/r/InteractiveCYOA",
    "currentURL": "https://cyoa.example/my-story/",
    "userAgent": "Mozilla/5.0",
}


@pytest.fixture
def sample_event():
    return dict(SAMPLE_EVENT)
