"""Tests for the failed-login counter and temporary account lockout."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fitvibe.config import get_settings
from fitvibe.dependencies import get_redis_dep
from fitvibe.main import create_app

THRESHOLD = 3


def _memory_redis() -> AsyncMock:
    """AsyncMock Redis backed by a dict for the counter commands login uses."""
    store: dict[str, int] = {}
    redis = AsyncMock()

    async def incr(key):
        store[key] = store.get(key, 0) + 1
        return store[key]

    async def get(key):
        value = store.get(key)
        return None if value is None else str(value)

    async def delete(*keys):
        return sum(1 for key in keys if store.pop(key, None) is not None)

    redis.incr.side_effect = incr
    redis.get.side_effect = get
    redis.delete.side_effect = delete
    redis.store = store
    return redis


@pytest.fixture
def redis(database, monkeypatch) -> AsyncMock:
    monkeypatch.setattr(get_settings(), "account_lockout_threshold", THRESHOLD)
    return _memory_redis()


@pytest_asyncio.fixture
async def login_client(database, redis):
    app = create_app()

    async def override():
        yield redis

    app.dependency_overrides[get_redis_dep] = override
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _login(client: AsyncClient, user: dict, password: str):
    return await client.post("/api/v1/auth/login", json={"email": user["email"], "password": password})


class TestLockout:
    async def test_failures_are_counted(self, login_client, redis, alice: dict):
        key = f"login_attempts:{alice['id']}"
        for expected in range(1, THRESHOLD):
            response = await _login(login_client, alice, "WrongP@ss1")
            assert response.status_code == 401
            assert redis.store[key] == expected

        assert redis.incr.await_count == THRESHOLD - 1
        # TTL is set once, when the window opens
        redis.expire.assert_awaited_once_with(key, get_settings().account_lockout_duration_minutes * 60)

    async def test_locked_at_threshold(self, login_client, redis, alice: dict):
        for _ in range(THRESHOLD):
            assert (await _login(login_client, alice, "WrongP@ss1")).status_code == 401

        locked = await _login(login_client, alice, alice["password"])
        assert locked.status_code == 429
        assert "locked" in locked.json()["detail"].lower()
        assert redis.incr.await_count == THRESHOLD

    async def test_success_clears_counter(self, login_client, redis, alice: dict):
        key = f"login_attempts:{alice['id']}"
        for _ in range(THRESHOLD - 1):
            await _login(login_client, alice, "WrongP@ss1")
        assert redis.store[key] == THRESHOLD - 1

        response = await _login(login_client, alice, alice["password"])
        assert response.status_code == 200
        redis.delete.assert_awaited_with(key)
        assert key not in redis.store

        assert (await _login(login_client, alice, "WrongP@ss1")).status_code == 401
        assert redis.store[key] == 1

    async def test_unknown_email_is_not_counted(self, login_client, redis):
        response = await login_client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": "WrongP@ss1"}
        )
        assert response.status_code == 401
        redis.incr.assert_not_awaited()
