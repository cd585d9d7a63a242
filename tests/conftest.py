"""Shared test fixtures.

Every test gets a fresh SQLite database file built from the ORM metadata.
Redis is never initialised, so rate limiting is bypassed and /ready reports
``degraded``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from appdedupe.config import get_settings
from appdedupe.database import close_db, get_engine, init_db
from appdedupe.db.base import Base
from appdedupe.db.models import AppName, Cluster, User
from appdedupe.main import create_app

ADMIN_EMAIL = "admin@example.com"
PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def settings_env(monkeypatch: pytest.MonkeyPatch):
    """Test configuration: one allow-listed admin, a long JWT secret, console logs."""
    monkeypatch.setenv("DEDUPE_ADMIN_EMAILS", f'["{ADMIN_EMAIL}"]')
    monkeypatch.setenv("DEDUPE_JWT_SECRET", "test-secret-key-that-is-at-least-32-bytes")
    monkeypatch.setenv("DEDUPE_LOG_FORMAT", "console")
    monkeypatch.setenv("DEDUPE_SCORING_RULE", "streak_bonus")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Initialise the app's engine against a throwaway SQLite file."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'dedupe.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield get_engine()
    await close_db()


@pytest_asyncio.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for arranging data and asserting on it."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """An HTTP client bound to a fresh app instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


async def register(client: AsyncClient, name: str, email: str, password: str = PASSWORD) -> dict:
    """Register through the API. Returns the response body plus auth headers."""
    response = await client.post(
        "/api/v1/users/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    data["headers"] = {"Authorization": f"Bearer {data['token']}"}
    return data


@pytest_asyncio.fixture
async def reviewer(client: AsyncClient) -> dict:
    """A regular (non-admin) account."""
    return await register(client, "Jane Smith", "jane@example.com")


@pytest_asyncio.fixture
async def second_reviewer(client: AsyncClient) -> dict:
    return await register(client, "John Doe", "john@example.com")


@pytest_asyncio.fixture
async def admin(client: AsyncClient) -> dict:
    """An account on the admin allow-list."""
    return await register(client, "Admin Reviewer", ADMIN_EMAIL)


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------


async def make_cluster(db: AsyncSession, name: str, apps: list[str], canonical_name: str | None = None) -> Cluster:
    """Insert a cluster with unconfirmed member app names."""
    cluster = Cluster(name=name, canonical_name=canonical_name or name, description="")
    db.add(cluster)
    await db.flush()
    db.add_all(
        AppName(name=app, canonical_name=cluster.canonical_name, cluster_id=cluster.id) for app in apps
    )
    await db.commit()
    return cluster


async def app_id(db: AsyncSession, name: str) -> int:
    return (await db.execute(select(AppName.id).where(AppName.name == name))).scalar_one()


async def table_counts(db: AsyncSession) -> dict[str, int]:
    """Row counts used to prove an operation mutated nothing."""
    return {
        "clusters": (await db.execute(select(func.count(Cluster.id)))).scalar_one(),
        "apps": (await db.execute(select(func.count(AppName.id)))).scalar_one(),
        "confirmed": (
            await db.execute(select(func.count(AppName.id)).where(AppName.confirmed.is_(True)))
        ).scalar_one(),
        "users": (await db.execute(select(func.count(User.id)))).scalar_one(),
    }
