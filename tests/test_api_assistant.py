"""
Tests for the assistant API endpoints.

Routes run against the real use cases with the session store, the
market data gateway and the text generator swapped through
dependency overrides. Validates request validation, camelCase
response shapes and error mapping.
"""

from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.domain.assistant.entities import MoverItem, MoverKind, NewsItem, QuoteRecord
from app.domain.assistant.errors import PersistenceError
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.ports import ChatSessionRepository, MarketDataProvider
from app.infrastructure.assistant.groq_text_generator import GroqTextGenerator
from app.infrastructure.assistant.in_memory_session_repository import (
    InMemoryChatSessionRepository,
)
from app.interfaces.assistant.dependencies import (
    get_market_data_gateway,
    get_session_repository,
    get_text_generator,
)
from app.core.config import settings
from app.main import app

USER = "user-1"
EMAIL = "user-1@example.com"


class StaticProvider(MarketDataProvider):
    """Serves canned quotes, movers and news."""

    def __init__(self, name: str, quotes=None, movers=None, news=None) -> None:
        self.name = name
        self._quotes = quotes or {}
        self._movers = movers or []
        self._news = news or []

    async def quote(self, symbol: str) -> Optional[QuoteRecord]:
        return self._quotes.get(symbol)

    async def movers(self, kind: MoverKind, limit: int = 10) -> list[MoverItem]:
        return self._movers[:limit]

    async def news(self, symbol: Optional[str] = None, limit: int = 5) -> list[NewsItem]:
        return self._news[:limit]


def _gateway() -> MarketDataGateway:
    default = StaticProvider(
        "FMP",
        quotes={
            "AAPL": QuoteRecord(
                symbol="AAPL", name="Apple Inc.", price=189.5, change_percent=0.64, source="FMP"
            )
        },
        movers=[MoverItem("NVDA", "NVIDIA", 900.0, 45.0, 5.2)],
        news=[NewsItem(title="Infosys wins deal", url="https://news.example.com/infy", source="Example")],
    )
    return MarketDataGateway(default_provider=default, india_provider=StaticProvider("TwelveData"))


@pytest.fixture
def repo() -> InMemoryChatSessionRepository:
    return InMemoryChatSessionRepository()


@pytest.fixture
def client(repo):
    app.dependency_overrides[get_session_repository] = lambda: repo
    app.dependency_overrides[get_market_data_gateway] = _gateway
    app.dependency_overrides[get_text_generator] = lambda: GroqTextGenerator(api_key="")
    yield TestClient(app)
    app.dependency_overrides.clear()


def _chat(client, message: str, session_id: str = "s1"):
    return client.post(
        "/api/v1/assistant/chat",
        json={"message": message, "userId": USER, "userEmail": EMAIL, "sessionId": session_id},
    )


class TestChatEndpoint:
    """Tests for POST /api/v1/assistant/chat."""

    def test_quote_reply_camel_case(self, client, repo) -> None:
        """A quote question returns the resolved quote in camelCase."""
        response = _chat(client, "price of AAPL")

        assert response.status_code == 200
        body = response.json()
        assert body["sessionId"] == "s1"
        assert body["intent"] == "stock_quote"
        assert body["stockData"]["symbol"] == "AAPL"
        assert body["stockData"]["changePercent"] == 0.64
        assert body["suggestions"]
        assert repo.get_session(USER, "s1").metadata.total_messages == 2

    def test_anonymous_chat_gets_session_id(self, client) -> None:
        """A chat without identity still gets a fresh session ID."""
        response = client.post("/api/v1/assistant/chat", json={"message": "hello"})
        assert response.status_code == 200
        assert len(response.json()["sessionId"]) == 36

    def test_spam_rejected(self, client) -> None:
        """Repeated characters are rejected with 400."""
        response = _chat(client, "aaaaaaaaaaaaaaaa")
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input"

    def test_missing_message_rejected(self, client) -> None:
        """A body without a message fails schema validation."""
        response = client.post("/api/v1/assistant/chat", json={"userId": USER})
        assert response.status_code == 422

    def test_rate_limited(self, client) -> None:
        """The chat endpoint answers 429 after thirty messages in a minute."""
        statuses = [
            client.post("/api/v1/assistant/chat", json={"message": "hello"}).status_code
            for _ in range(31)
        ]
        assert statuses[:30] == [200] * 30
        assert statuses[30] == 429


class TestUnreachableStore:
    """The SQL store is down from the first request on."""

    @pytest.fixture
    def offline_client(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings, "session_backend", "sql")
        monkeypatch.setattr(
            settings, "database_url", f"sqlite:///{tmp_path / 'missing' / 'chat.db'}"
        )
        get_session_repository.cache_clear()
        app.dependency_overrides[get_market_data_gateway] = _gateway
        app.dependency_overrides[get_text_generator] = lambda: GroqTextGenerator(api_key="")
        yield TestClient(app)
        app.dependency_overrides.clear()
        get_session_repository.cache_clear()

    def test_chat_still_answers(self, offline_client) -> None:
        """Chat replies even though the turn cannot be stored."""
        response = _chat(offline_client, "hello")

        assert response.status_code == 200
        assert response.json()["response"]

    def test_voice_still_answers(self, offline_client) -> None:
        response = offline_client.post(
            "/api/v1/assistant/voice",
            json={"transcript": "go to portfolio", "userId": USER, "userEmail": EMAIL},
        )

        assert response.status_code == 200
        assert response.json()["intentData"] == "/portfolio"

    def test_history_reports_outage(self, offline_client) -> None:
        response = offline_client.get(f"/api/v1/assistant/history/{USER}")
        assert response.status_code == 503


class TestVoiceEndpoint:
    """Tests for POST /api/v1/assistant/voice."""

    def test_navigation(self, client) -> None:
        """Navigation transcripts are confirmed with their route."""
        response = client.post(
            "/api/v1/assistant/voice",
            json={"transcript": "go to portfolio", "confidence": 0.9},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["intent"] == "navigate"
        assert body["intentData"] == "/portfolio"
        assert body["isVoiceResponse"] is True

    def test_confidence_out_of_range(self, client) -> None:
        """Recognizer confidence must be between 0 and 1."""
        response = client.post(
            "/api/v1/assistant/voice",
            json={"transcript": "go to portfolio", "confidence": 1.5},
        )
        assert response.status_code == 422


class TestSessionEndpoints:
    """Tests for session lifecycle and history endpoints."""

    def test_start_session(self, client) -> None:
        response = client.post("/api/v1/assistant/sessions/start")
        assert response.status_code == 200
        body = response.json()
        assert len(body["sessionId"]) == 36
        assert body["suggestions"]

    def test_history_pagination(self, client) -> None:
        """History pages are newest first with pagination metadata."""
        _chat(client, "hello", session_id="s1")
        _chat(client, "what can you do", session_id="s2")

        response = client.get(f"/api/v1/assistant/history/{USER}", params={"limit": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"] == {
            "page": 1,
            "limit": 1,
            "total": 2,
            "totalPages": 2,
            "hasNext": True,
            "hasPrev": False,
        }
        session = body["sessions"][0]
        assert session["metadata"]["totalMessages"] == 2
        assert [m["sender"] for m in session["messages"]] == ["user", "assistant"]

    def test_history_without_messages(self, client) -> None:
        _chat(client, "hello")
        response = client.get(
            f"/api/v1/assistant/history/{USER}", params={"includeMessages": "false"}
        )
        assert response.json()["sessions"][0]["messages"] == []

    def test_history_limit_bounds(self, client) -> None:
        response = client.get(f"/api/v1/assistant/history/{USER}", params={"limit": 500})
        assert response.status_code == 422

    def test_end_session(self, client) -> None:
        """Ending twice succeeds; an unknown session is 404."""
        _chat(client, "hello")
        url = "/api/v1/assistant/sessions/s1/end"

        first = client.post(url, params={"userId": USER})
        second = client.post(url, params={"userId": USER})
        missing = client.post("/api/v1/assistant/sessions/nope/end", params={"userId": USER})

        assert first.status_code == 200
        assert first.json() == {"success": True, "sessionId": "s1"}
        assert second.status_code == 200
        assert missing.status_code == 404
        assert missing.json()["error"] == "Session not found"

    def test_delete_session(self, client) -> None:
        _chat(client, "hello")
        url = "/api/v1/assistant/sessions/s1"

        assert client.delete(url, params={"userId": USER}).status_code == 204
        assert client.delete(url, params={"userId": USER}).status_code == 404

    def test_recent_and_stats(self, client) -> None:
        _chat(client, "hello")

        recent = client.get(f"/api/v1/assistant/history/{USER}/recent").json()
        stats = client.get(f"/api/v1/assistant/stats/{USER}").json()

        assert recent["sessions"][0]["sessionId"] == "s1"
        assert recent["sessions"][0]["lastMessage"]
        assert stats["totalSessions"] == 1
        assert stats["totalMessages"] == 2
        assert stats["averageMessagesPerSession"] == 2.0

    def test_store_outage_is_503(self, client) -> None:
        broken = MagicMock(spec=ChatSessionRepository)
        broken.get_history.side_effect = PersistenceError("connection refused")
        app.dependency_overrides[get_session_repository] = lambda: broken

        response = client.get(f"/api/v1/assistant/history/{USER}")

        assert response.status_code == 503
        assert response.json()["error"] == "Conversation history unavailable"

    def test_suggestions(self, client) -> None:
        response = client.get("/api/v1/assistant/suggestions")
        assert response.status_code == 200
        assert response.json()["suggestions"]


class TestMarketDataEndpoints:
    """Tests for stock, movers and news endpoints."""

    def test_stock_found(self, client) -> None:
        response = client.get("/api/v1/assistant/stock/aapl")
        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "AAPL"
        assert body["source"] == "FMP"
        assert "resolvedAt" in body

    def test_stock_not_found(self, client) -> None:
        response = client.get("/api/v1/assistant/stock/ZZZZ")
        assert response.status_code == 404
        assert response.json() == {"error": "Symbol not found", "detail": "ZZZZ"}

    def test_stock_malformed(self, client) -> None:
        assert client.get("/api/v1/assistant/stock/A").status_code == 400

    def test_movers(self, client) -> None:
        response = client.get("/api/v1/assistant/movers/gainers")
        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "gainers"
        assert body["movers"][0]["changePercent"] == 5.2

    def test_movers_invalid_kind(self, client) -> None:
        response = client.get("/api/v1/assistant/movers/sideways")
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid movers kind"

    def test_news(self, client) -> None:
        response = client.get("/api/v1/assistant/news", params={"symbol": "infy"})
        assert response.status_code == 200
        body = response.json()
        assert body["symbol"] == "INFY"
        assert body["articles"][0]["title"] == "Infosys wins deal"


class TestStatusEndpoint:
    """Tests for GET /api/v1/assistant/status."""

    def test_reports_configuration_without_keys(self, client) -> None:
        response = client.get("/api/v1/assistant/status")
        assert response.status_code == 200
        body = response.json()
        assert set(body["providers"]) == {"FMP", "TwelveData"}
        assert body["textGeneration"] is False
        assert "apikey" not in response.text.lower()


class TestSecurityHeaders:
    """Tests for security headers on responses."""

    def test_assistant_responses_not_cached(self, client) -> None:
        response = client.get("/api/v1/assistant/suggestions")
        assert response.headers["Cache-Control"] == "no-store"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "microphone=(self)" in response.headers["Permissions-Policy"]
