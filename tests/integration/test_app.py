"""
Integration tests for application-wide behaviour: health, error shape,
security headers and CORS.
"""

from unittest.mock import AsyncMock, patch

from app.core.config import settings


class _FakeManager:
    def __init__(self, connected):
        self.test_connection = AsyncMock(return_value=connected)


async def test_health_reports_database_status(async_client):
    with patch("app.api.endpoints.health.get_async_db_manager", AsyncMock(return_value=_FakeManager(True))):
        response = await async_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected", "service": "pivot-backend"}


async def test_health_reports_unreachable_database(async_client):
    with patch("app.api.endpoints.health.get_async_db_manager", AsyncMock(return_value=_FakeManager(False))):
        response = await async_client.get("/health")

    assert response.json()["database"] == "disconnected"


async def test_security_headers_are_set(async_client):
    response = await async_client.get("/")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["referrer-policy"] == "no-referrer"
    assert response.headers["cross-origin-opener-policy"] == "same-origin"
    assert response.headers["x-dns-prefetch-control"] == "off"
    assert "strict-transport-security" in response.headers


async def test_unknown_route_uses_error_shape(async_client):
    response = await async_client.get("/no-such-route")

    assert response.status_code == 404
    body = response.json()
    assert set(body) == {"statusCode", "message", "timestamp", "path"}
    assert body["path"] == "/no-such-route"


async def test_cors_allows_frontend_origin(async_client):
    origin = settings.CORS_ORIGINS[0]

    response = await async_client.options(
        "/auth/login",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"


async def test_cors_rejects_unknown_origin(async_client):
    response = await async_client.options(
        "/auth/login",
        headers={"Origin": "https://evil.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert "access-control-allow-origin" not in response.headers

