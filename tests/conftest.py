"""Shared test fixtures.

Tests run against an in-memory SQLite database (one shared connection) with
HS256 tokens and without Redis, so rate limiting, caching and pub/sub are
bypassed the same way they are when Redis is down in production.
"""

from __future__ import annotations

import os

os.environ["FV_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["FV_JWT_ALGORITHM"] = "HS256"
os.environ["FV_JWT_SECRET"] = "test-only-secret-0123456789abcdef0123456789abcdef"
os.environ["FV_LOG_FORMAT"] = "console"
os.environ["FV_LOG_LEVEL"] = "WARNING"

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fitvibe.activities.catalog import seed_activity_types
from fitvibe.auth.jwt import reset_keys
from fitvibe.config import get_settings
from fitvibe.database import close_db, create_all, get_session, init_db
from fitvibe.db.models import User
from fitvibe.email.service import reset_email_service
from fitvibe.gamification.seed import seed_badges
from fitvibe.main import create_app
from fitvibe.redis_client import close_redis

DEFAULT_PASSWORD = "SecureP@ss1"


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema with seeded catalog rows for every test."""
    get_settings.cache_clear()
    reset_keys()
    reset_email_service()
    await close_redis()

    settings = get_settings()
    await init_db(settings.database_url)
    await create_all()
    async for session in get_session():
        await seed_activity_types(session)
        await seed_badges(session)
        break

    yield

    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
def mock_email_service(monkeypatch):
    """Mock the email service to prevent actual email sending."""
    mock_service = MagicMock()
    mock_service.send_template = AsyncMock(return_value=True)
    mock_service.send_email = AsyncMock(return_value=True)

    monkeypatch.setattr("fitvibe.auth.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


async def register_user(
    client: AsyncClient,
    email: str,
    first_name: str = "Test",
    last_name: str = "Athlete",
    password: str = DEFAULT_PASSWORD,
    **extra: object,
) -> dict:
    """Register via the API. Returns id, tokens and ready-made auth headers."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": password, "first_name": first_name, "last_name": last_name, **extra},
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user"]["id"],
        "email": email,
        "password": password,
        "access_token": data["access_token"],
        "refresh_token": data["refresh_token"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> dict:
    return await register_user(client, "alice@example.com", first_name="Alice", last_name="Runner")


@pytest_asyncio.fixture
async def bob(client: AsyncClient) -> dict:
    return await register_user(client, "bob@example.com", first_name="Bob", last_name="Cyclist")


@pytest_asyncio.fixture
async def admin(client: AsyncClient, db_session: AsyncSession) -> dict:
    """A registered user with the admin flag set."""
    creds = await register_user(client, "admin@example.com", first_name="Ada", last_name="Admin")
    await db_session.execute(update(User).where(User.id == creds["id"]).values(is_admin=True))
    await db_session.commit()
    return creds


async def make_friends(client: AsyncClient, a: dict, b: dict) -> None:
    """Send and accept a friend request between two registered users."""
    sent = await client.post(f"/api/v1/social/friends/{b['id']}/request", json={}, headers=a["headers"])
    assert sent.status_code == 201, sent.text
    accepted = await client.post(
        f"/api/v1/social/friends/requests/{sent.json()['id']}/respond",
        json={"accept": True},
        headers=b["headers"],
    )
    assert accepted.status_code == 200, accepted.text


async def complete_workout(
    client: AsyncClient,
    user: dict,
    activity_type: str = "running",
    minutes: int = 30,
    distance_km: float = 5.0,
) -> dict:
    """Start a session and complete it ``minutes`` later. Returns the completion payload."""
    started = await client.post("/api/v1/activities/start", json={"activity_type": activity_type}, headers=user["headers"])
    assert started.status_code == 201, started.text
    session = started.json()
    completed_at = datetime.fromisoformat(session["started_at"]) + timedelta(minutes=minutes)
    response = await client.post(
        f"/api/v1/activities/{session['id']}/complete",
        json={"completed_at": completed_at.isoformat(), "distance_km": distance_km},
        headers=user["headers"],
    )
    assert response.status_code == 200, response.text
    return response.json()
