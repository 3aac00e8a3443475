"""
Tests for LocalGSM middleware.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from localgsm.core.logging_config import correlation_id
from localgsm.gateway.middleware import (
    CORRELATION_HEADER,
    MockAuthMiddleware,
    RequestLoggingMiddleware,
)


def _make_app(auth_enabled: bool) -> FastAPI:
    app = FastAPI()
    seen = {}

    @app.get("/v1/projects/p1/secrets")
    async def list_secrets():
        seen["correlation_id"] = correlation_id.get()
        return {"secrets": []}

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    app.add_middleware(MockAuthMiddleware, enabled=auth_enabled)
    app.add_middleware(RequestLoggingMiddleware)
    app.state.seen = seen
    return app


@pytest.fixture
def auth_client():
    """Client for an app with authentication enforced."""
    return TestClient(_make_app(auth_enabled=True))


class TestMockAuthMiddleware:
    """Test bearer token enforcement."""

    def test_disabled_allows_everything(self):
        """Test requests pass when auth is disabled."""
        client = TestClient(_make_app(auth_enabled=False))

        assert client.get("/v1/projects/p1/secrets").status_code == 200

    def test_missing_header(self, auth_client):
        """Test a request without credentials is rejected."""
        response = auth_client.get("/v1/projects/p1/secrets")

        assert response.status_code == 401
        assert response.json() == {
            "error": {
                "code": 401,
                "message": "Request is missing required authentication credential",
                "status": "UNAUTHENTICATED",
            }
        }

    def test_wrong_scheme(self, auth_client):
        """Test a non-bearer scheme is rejected."""
        response = auth_client.get(
            "/v1/projects/p1/secrets", headers={"Authorization": "Basic dXNlcjpwYXNz"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid authentication credentials"

    def test_empty_token(self, auth_client):
        """Test an empty bearer token is rejected."""
        response = auth_client.get(
            "/v1/projects/p1/secrets", headers={"Authorization": "Bearer   "}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid authentication token"

    def test_any_token_accepted(self, auth_client):
        """Test any non-empty bearer token is accepted."""
        response = auth_client.get(
            "/v1/projects/p1/secrets", headers={"Authorization": "Bearer anything"}
        )

        assert response.status_code == 200

    def test_health_not_protected(self, auth_client):
        """Test health probes bypass authentication."""
        assert auth_client.get("/health").status_code == 200


class TestRequestLoggingMiddleware:
    """Test correlation id handling."""

    def test_generates_correlation_id(self):
        """Test a correlation id is generated and echoed."""
        app = _make_app(auth_enabled=False)
        response = TestClient(app).get("/v1/projects/p1/secrets")

        assert response.headers[CORRELATION_HEADER]
        assert app.state.seen["correlation_id"] == response.headers[CORRELATION_HEADER]

    def test_propagates_incoming_correlation_id(self):
        """Test an incoming correlation id is reused."""
        response = TestClient(_make_app(auth_enabled=False)).get(
            "/health", headers={CORRELATION_HEADER: "req-42"}
        )

        assert response.headers[CORRELATION_HEADER] == "req-42"

    def test_rejected_requests_are_tagged(self, auth_client):
        """Test responses short-circuited by auth still carry the id."""
        response = auth_client.get("/v1/projects/p1/secrets")

        assert response.status_code == 401
        assert CORRELATION_HEADER in response.headers
