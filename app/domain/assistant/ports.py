"""
Port interfaces (ABCs) for the assistant bounded context.

Ports define the contracts that the domain requires from the outside world.
Infrastructure adapters implement these interfaces.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.assistant.entities import (
    ChatSession,
    ChatStatistics,
    ClientMeta,
    HistoryPage,
    Message,
    MoverItem,
    MoverKind,
    NewsItem,
    QuoteRecord,
    SessionSummary,
    SessionSnapshot,
)


class MarketDataProvider(ABC):
    """Port for one upstream market-data API.

    Implementations make exactly one HTTP call per method invocation and
    raise ProviderUnavailableError on timeouts, HTTP errors or malformed
    payloads. They never retry.
    """

    name: str = "provider"

    @property
    def is_configured(self) -> bool:
        """Whether the provider has the credentials it needs."""
        return True

    @abstractmethod
    async def quote(self, symbol: str) -> Optional[QuoteRecord]:
        """Return a normalized quote, or None when the provider has no data."""
        raise NotImplementedError

    @abstractmethod
    async def movers(self, kind: MoverKind, limit: int = 10) -> list[MoverItem]:
        """Return today's top gainers or losers."""
        raise NotImplementedError

    @abstractmethod
    async def news(
        self, symbol: Optional[str] = None, limit: int = 5
    ) -> list[NewsItem]:
        """Return recent headlines, market-wide or for one symbol."""
        raise NotImplementedError


class TextGenerationPort(ABC):
    """Port for the opaque AI text-generation collaborator."""

    @property
    def is_enabled(self) -> bool:
        return True

    @abstractmethod
    async def generate(self, prompt: str, history: list[Message]) -> str:
        """Return free text for the prompt.

        Raises:
            TextGenerationError: On any upstream failure.
        """
        raise NotImplementedError


class ChatSessionRepository(ABC):
    """Port for the durable, append-only conversation log.

    All operations are keyed by (user_id, session_id).
    """

    @abstractmethod
    def append_turn(
        self,
        user_id: str,
        session_id: str,
        user_email: str,
        user_message: Message,
        assistant_message: Message,
        client_meta: ClientMeta,
    ) -> SessionSnapshot:
        """Atomically create-if-absent and append both messages of a turn.

        started_at and platform are only written when the session is
        created. Concurrent calls for the same key must both land.

        Raises:
            PersistenceError: When the store rejects the write.
        """
        raise NotImplementedError

    @abstractmethod
    def get_history(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        include_messages: bool = True,
        message_limit: Optional[int] = 50,
    ) -> HistoryPage:
        """Return sessions sorted by last activity, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get_session(self, user_id: str, session_id: str) -> Optional[ChatSession]:
        """Return one session with all of its messages, or None."""
        raise NotImplementedError

    @abstractmethod
    def end_session(self, user_id: str, session_id: str) -> bool:
        """Mark a session inactive. Idempotent.

        Returns:
            True if the session exists (whether or not it was already ended).
        """
        raise NotImplementedError

    @abstractmethod
    def delete_session(self, user_id: str, session_id: str) -> bool:
        """Delete a session and its messages. Returns False if absent."""
        raise NotImplementedError

    @abstractmethod
    def get_statistics(self, user_id: str) -> ChatStatistics:
        """Return aggregated statistics for a user's sessions."""
        raise NotImplementedError

    @abstractmethod
    def get_recent_sessions(
        self, user_id: str, limit: int = 10
    ) -> list[SessionSummary]:
        """Return the most recently active sessions with a message preview."""
        raise NotImplementedError

    def ping(self) -> bool:
        """Return True when the store can serve reads."""
        return True
