"""Tests for FastAPI application and exception handlers.

Every failure, including routing errors and unhandled exceptions, must
leave the server as the {success: false, code, message} envelope.
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from campus_erp.core.errors import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from campus_erp.main import create_app


@pytest.fixture
def bare_app():
    """Create test application instance without dependency overrides."""
    return create_app()


@pytest.fixture
async def bare_client(bare_app):
    """Client that returns 500 responses instead of re-raising app errors."""
    transport = ASGITransport(app=bare_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoint:
    async def test_health_returns_healthy_status(self, bare_client):
        response = await bare_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_api_health_returns_running_status(self, bare_client):
        response = await bare_client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "Server is running"}


class TestUnknownRoutes:
    @pytest.mark.parametrize("path", ["/api/v1/nonexistent", "/nope", "/api/v2/fetchFile"])
    async def test_unknown_route_returns_404_envelope(self, bare_client, path):
        response = await bare_client.get(path)

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "code": "NOT_FOUND",
            "message": "API endpoint not found",
            "details": None,
        }

    async def test_wrong_method_returns_405_envelope(self, bare_client):
        response = await bare_client.get("/api/v1/request-otp")

        assert response.status_code == 405
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "METHOD_NOT_ALLOWED"


class TestExceptionHandlers:
    """Custom exceptions become HTTP responses with the error envelope."""

    @pytest.mark.parametrize(
        ("exc", "status", "code"),
        [
            (ValidationError("Invalid input", details=[{"field": "x"}]), 400, "VALIDATION_ERROR"),
            (UnauthorizedError(), 401, "UNAUTHORIZED"),
            (ForbiddenError(), 403, "FORBIDDEN"),
            (NotFoundError("File"), 404, "NOT_FOUND"),
            (InternalError(), 500, "INTERNAL_ERROR"),
        ],
    )
    async def test_api_errors(self, bare_app, bare_client, exc, status, code):
        @bare_app.get("/test/raise")
        async def raise_error():
            raise exc

        response = await bare_client.get("/test/raise")

        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["code"] == code
        assert body["message"] == exc.message

    async def test_validation_details_are_returned(self, bare_app, bare_client):
        @bare_app.get("/test/details")
        async def raise_error():
            raise ValidationError("Invalid input", details=[{"field": "email"}])

        response = await bare_client.get("/test/details")
        assert response.json()["details"] == [{"field": "email"}]

    async def test_unhandled_exception_hides_details(self, bare_app, bare_client):
        @bare_app.get("/test/boom")
        async def boom():
            raise RuntimeError("password=hunter2 at db-prod-01")

        response = await bare_client.get("/test/boom")

        assert response.status_code == 500
        body = response.json()
        assert body == {
            "success": False,
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": None,
        }
        assert "hunter2" not in response.text


class TestCORSMiddleware:
    async def test_cors_allows_configured_origin(self, bare_client):
        response = await bare_client.options(
            "/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 200
        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"
        assert response.headers.get("access-control-allow-credentials") == "true"

    async def test_cors_denies_unconfigured_origin(self):
        with patch("campus_erp.main.settings.allowed_origins", ["http://allowed-origin.com"]):
            test_app = create_app()
            transport = ASGITransport(app=test_app)
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.options(
                    "/health",
                    headers={
                        "Origin": "http://malicious-site.com",
                        "Access-Control-Request-Method": "GET",
                    },
                )
                allowed_origin = response.headers.get("access-control-allow-origin")
                assert allowed_origin != "http://malicious-site.com"


class TestSecurityHeadersMiddleware:
    async def test_headers_on_every_response(self, bare_client):
        response = await bare_client.get("/health")

        assert response.headers["x-frame-options"] == "DENY"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["referrer-policy"] == "strict-origin-when-cross-origin"
        assert "default-src 'none'" in response.headers["content-security-policy"]

    async def test_api_responses_not_cached(self, bare_client):
        response = await bare_client.get("/api/v1/nonexistent")
        assert response.headers["cache-control"] == "no-store, max-age=0"

    async def test_no_hsts_outside_production(self, bare_client):
        response = await bare_client.get("/health")
        assert "strict-transport-security" not in response.headers

    async def test_hsts_in_production(self):
        with patch("campus_erp.main.settings.environment", "production"):
            transport = ASGITransport(app=create_app())
            async with AsyncClient(transport=transport, base_url="http://test") as ac:
                response = await ac.get("/health")
        assert "max-age=31536000" in response.headers["strict-transport-security"]
