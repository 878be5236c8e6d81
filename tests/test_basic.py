"""
Basic application tests.

Validates that the FastAPI app starts correctly and the
health endpoints respond as expected.
"""

import logging
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.domain.assistant.ports import ChatSessionRepository
from app.infrastructure.assistant.in_memory_session_repository import (
    InMemoryChatSessionRepository,
)
from app.interfaces.assistant.dependencies import get_session_repository
from app.main import app
from app.shared.logging import RedactSecretsFilter, redact

client = TestClient(app)


@pytest.fixture
def store_override():
    """Install a session store override and remove it afterwards."""

    def install(repo: ChatSessionRepository) -> None:
        app.dependency_overrides[get_session_repository] = lambda: repo

    yield install
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_200(self) -> None:
        """Health endpoint must return HTTP 200 with status ok."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200

    def test_health_response_body(self) -> None:
        """Health endpoint must return status and version fields."""
        response = client.get("/api/v1/health")
        body = response.json()
        assert body["status"] == "ok"
        assert "version" in body


class TestReadinessEndpoint:
    """Tests for the readiness check endpoint."""

    def test_ready_when_store_answers(self, store_override) -> None:
        """Readiness is 200 while the conversation store responds."""
        store_override(InMemoryChatSessionRepository())
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["sessionStore"] is True

    def test_not_ready_when_store_down(self, store_override) -> None:
        """Readiness is 503 while the conversation store is unreachable."""
        broken = MagicMock(spec=ChatSessionRepository)
        broken.ping.return_value = False
        store_override(broken)

        response = client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json() == {
            "status": "degraded",
            "version": app.version,
            "sessionStore": False,
        }


class TestSecurityHeaders:
    """Tests for security headers on responses."""

    def test_security_headers_present(self) -> None:
        """All security headers must be present on every response."""
        response = client.get("/api/v1/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "Content-Security-Policy" in response.headers

    def test_health_is_cacheable(self) -> None:
        """Only assistant responses are marked no-store."""
        response = client.get("/api/v1/health")
        assert "Cache-Control" not in response.headers


class TestLogRedaction:
    """Provider credentials never reach the logs."""

    def test_redact_query_key(self) -> None:
        url = "https://api.example.com/quote?symbol=TCS&apikey=secret123"
        assert redact(url) == "https://api.example.com/quote?symbol=TCS&apikey=***"

    def test_filter_rewrites_record(self) -> None:
        record = logging.LogRecord(
            "httpx", logging.INFO, __file__, 1, "GET %s", ("/quote?apikey=abc",), None
        )
        assert RedactSecretsFilter().filter(record) is True
        assert record.getMessage() == "GET /quote?apikey=***"
