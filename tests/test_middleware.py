"""Middleware tests: request ID, CORS, logging, Redis startup, error handling."""

import json
import logging

import pytest
import structlog
from httpx import ASGITransport, AsyncClient

from fitvibe.config import get_settings
from fitvibe.main import create_app
from fitvibe.middleware.cors import EXPOSED_HEADERS
from fitvibe.middleware.logging import setup_logging
from fitvibe.redis_client import connect_redis, get_optional_redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_no_rate_limit_headers_without_redis(client: AsyncClient) -> None:
    """Without Redis the limiter steps aside instead of failing requests."""
    for _ in range(5):
        response = await client.get("/version")
        assert response.status_code == 200
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:4200",
            "Access-Control-Request-Method": "GET",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:4200"


@pytest.mark.asyncio
async def test_404_returns_json(client: AsyncClient) -> None:
    """Unknown paths return 404 with JSON body."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.headers["content-type"] == "application/json"
    assert response.json()["detail"] == "Not Found"


@pytest.mark.asyncio
async def test_validation_error_shape(client: AsyncClient) -> None:
    """Request validation failures return 422 with the error list."""
    response = await client.post("/api/v1/auth/register", json={"email": "not-an-email"})
    assert response.status_code == 422
    data = response.json()
    assert data["detail"] == "Validation error"
    assert isinstance(data["errors"], list)
    assert data["errors"]


@pytest.mark.asyncio
async def test_domain_not_found_maps_to_404(client: AsyncClient, alice: dict) -> None:
    """NotFoundError raised by a service leaves the API as a 404 JSON body."""
    response = await client.get("/api/v1/activities/999999", headers=alice["headers"])
    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_missing_token_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/users/me")
    assert response.status_code in (401, 403)


def _preflight_headers(origin: str) -> dict[str, str]:
    return {"Origin": origin, "Access-Control-Request-Method": "GET"}


@pytest.mark.asyncio
async def test_cors_rejects_unlisted_origin(client: AsyncClient) -> None:
    response = await client.options("/health", headers=_preflight_headers("https://evil.example.com"))
    assert "access-control-allow-origin" not in response.headers


@pytest.mark.asyncio
async def test_cors_any_localhost_port_in_debug(database, monkeypatch) -> None:
    """Debug builds accept dev servers on any localhost port, production does not."""
    for debug, allowed in ((True, True), (False, False)):
        monkeypatch.setattr(get_settings(), "debug", debug)
        transport = ASGITransport(app=create_app())
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.options("/health", headers=_preflight_headers("http://localhost:5173"))
        assert ("access-control-allow-origin" in response.headers) is allowed


def test_cors_exposes_rate_limit_headers() -> None:
    assert {"X-Request-Id", "X-RateLimit-Remaining", "Retry-After"} <= set(EXPOSED_HEADERS)


def test_stdlib_records_rendered_as_json(capsys) -> None:
    settings = get_settings().model_copy(update={"log_format": "json"})
    setup_logging(settings)
    setup_logging(settings)
    root = logging.getLogger()
    ours = [h for h in root.handlers if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)]
    try:
        assert len(ours) == 1
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        logging.getLogger("fitvibe.activities").warning("Streak reset for user %s", 7)
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "Streak reset for user 7"
        assert record["level"] == "warning"
        assert record["service"] == "fitvibe-api"
        assert record["env"] == settings.environment
    finally:
        for handler in ours:
            root.removeHandler(handler)


@pytest.mark.asyncio
async def test_redis_unreachable_leaves_client_unset() -> None:
    assert await connect_redis("redis://127.0.0.1:1/0") is False
    assert get_optional_redis() is None
