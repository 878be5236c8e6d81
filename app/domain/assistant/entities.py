"""
Domain entities for the assistant bounded context.

Entities represent core business objects with identity and lifecycle.
They contain no framework imports and no IO operations.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    """Mint a conversation session identifier.

    This is the only session-ID scheme in the system.
    """
    return str(uuid4())


class Sender(Enum):
    """Author of a conversational message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageType(Enum):
    """How a message entered or left the system."""

    TEXT = "text"
    VOICE_INPUT = "voice_input"
    VOICE_RESPONSE = "voice_response"


class IntentType(Enum):
    """Voice intent taxonomy used by the UI layer."""

    NAVIGATE = "navigate"
    STOCK_DATA = "stock_data"
    ACTION = "action"
    SEARCH = "search"
    COMPARE = "compare"
    NEWS = "news"
    HELP = "help"
    ANSWER = "answer"
    ERROR = "error"


class MoverKind(Enum):
    """Direction of a market movers list."""

    GAINERS = "gainers"
    LOSERS = "losers"


@dataclass(frozen=True)
class QuoteRecord:
    """Normalized market snapshot for one symbol.

    Request-scoped. Never persisted on its own, only embedded in a
    message's stock data.
    """

    symbol: str
    name: str
    price: float
    source: str
    change: Optional[float] = None
    change_percent: Optional[float] = None
    day_low: Optional[float] = None
    day_high: Optional[float] = None
    year_low: Optional[float] = None
    year_high: Optional[float] = None
    market_cap: Optional[float] = None
    pe: Optional[float] = None
    eps: Optional[float] = None
    volume: Optional[int] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    resolved_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase shape stored in message payloads."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "dayLow": self.day_low,
            "dayHigh": self.day_high,
            "yearLow": self.year_low,
            "yearHigh": self.year_high,
            "marketCap": self.market_cap,
            "pe": self.pe,
            "eps": self.eps,
            "volume": self.volume,
            "sector": self.sector,
            "industry": self.industry,
            "source": self.source,
            "resolvedAt": self.resolved_at.isoformat(),
        }


@dataclass(frozen=True)
class MoverItem:
    """A stock appearing in a top gainers or top losers list."""

    symbol: str
    name: str
    price: Optional[float]
    change: Optional[float]
    change_percent: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
        }


@dataclass(frozen=True)
class NewsItem:
    """A single market news headline."""

    title: str
    url: str
    source: str
    published_at: Optional[datetime] = None
    summary: str = ""
    symbol: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "summary": self.summary,
            "symbol": self.symbol,
        }


@dataclass(frozen=True)
class VoiceMetadata:
    """Summary of the voice recognition that produced a message."""

    is_voice_input: bool = True
    confidence: Optional[float] = None
    language: str = "en-US"
    intent: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isVoiceInput": self.is_voice_input,
            "confidence": self.confidence,
            "language": self.language,
            "intent": self.intent,
        }


@dataclass(frozen=True)
class Message:
    """One conversational turn unit. Immutable once created.

    Attributes:
        text: Message body as shown to the user.
        sender: Who wrote the message.
        type: Text, voice input or voice response.
        stock_data: Serialized QuoteRecord when one was resolved.
        additional_data: Structured payload describing what was resolved.
        voice_metadata: Present only for voice turns.
        timestamp: Creation time (UTC).
        id: Opaque message identifier.
    """

    text: str
    sender: Sender
    type: MessageType = MessageType.TEXT
    stock_data: Optional[dict[str, Any]] = None
    additional_data: Optional[dict[str, Any]] = None
    voice_metadata: Optional[VoiceMetadata] = None
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender.value,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "stockData": self.stock_data,
            "additionalData": self.additional_data,
            "voiceMetadata": (
                self.voice_metadata.to_dict() if self.voice_metadata else None
            ),
        }


@dataclass(frozen=True)
class ClientMeta:
    """Client details recorded when a session is first created."""

    platform: str = "web"
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class SessionMetadata:
    """Bookkeeping attached to a chat session."""

    started_at: datetime
    last_active_at: datetime
    total_messages: int = 0
    is_active: bool = True
    platform: str = "web"
    user_agent: Optional[str] = None
    ended_at: Optional[datetime] = None


@dataclass(frozen=True)
class ChatSession:
    """Ordered, append-only conversation log keyed by (user_id, session_id).

    total_messages always equals len(messages). Once is_active is
    False the session is terminal.
    """

    user_id: str
    session_id: str
    user_email: str
    messages: tuple[Message, ...]
    metadata: SessionMetadata

    def truncated(self, message_limit: Optional[int]) -> "ChatSession":
        """Return a copy holding only the most recent ``message_limit`` messages."""
        if message_limit is None or len(self.messages) <= message_limit:
            return self
        kept = self.messages[-message_limit:] if message_limit > 0 else ()
        return replace(self, messages=kept)

    def without_messages(self) -> "ChatSession":
        return replace(self, messages=())


@dataclass(frozen=True)
class SessionSnapshot:
    """State of a session right after a turn was appended."""

    user_id: str
    session_id: str
    total_messages: int
    last_active_at: datetime
    is_active: bool
    created: bool


@dataclass(frozen=True)
class HistoryPage:
    """One page of a user's sessions, newest activity first."""

    sessions: list[ChatSession]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass(frozen=True)
class SessionSummary:
    """Lightweight view of a session for "recent conversations" lists."""

    session_id: str
    last_active_at: datetime
    total_messages: int
    is_active: bool
    last_message_preview: Optional[str]


@dataclass(frozen=True)
class ChatStatistics:
    """Aggregated conversation statistics for one user."""

    total_sessions: int = 0
    total_messages: int = 0
    active_sessions: int = 0
    average_messages_per_session: float = 0.0
    first_session_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    active_days: int = 0


@dataclass(frozen=True)
class Intent:
    """Classified purpose of a voice transcript.

    Produced fresh per classification call.
    """

    type: IntentType
    data: Any
    confidence: float
    stock_symbol: Optional[str] = None
    route: Optional[str] = None
    action: Optional[str] = None
    query: Optional[str] = None
    symbols: tuple[str, ...] = ()

    def entities(self) -> dict[str, Any]:
        """Return only the extracted entities that are set."""
        values = {
            "stockSymbol": self.stock_symbol,
            "route": self.route,
            "action": self.action,
            "query": self.query,
            "symbols": list(self.symbols) if self.symbols else None,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of dispatching one chat message.

    Attributes:
        narrative_context: Reply text (or context handed to generation).
        stock_data: Resolved quote, if any.
        additional_data: Structured payload, e.g. a mover list or comparison.
        intent: Name of the rule (or fallback) that produced the result.
        suggestions: Follow-up prompts for the UI.
    """

    narrative_context: str
    stock_data: Optional[QuoteRecord] = None
    additional_data: Optional[dict[str, Any]] = None
    intent: str = "general"
    suggestions: tuple[str, ...] = ()
