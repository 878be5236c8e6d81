"""
Pydantic schemas for assistant API request/response validation.

These schemas enforce input validation and define the API contract.
Fields are snake_case in Python and camelCase on the wire.
No business logic belongs here.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Loose transport bound; the domain validator enforces the real limits
# and answers with a 400 rather than a 422.
RAW_TEXT_MAX_LEN = 5000
ID_MAX_LEN = 128


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Requests ─────────────────────────────────────────────────────


class ChatRequest(CamelModel):
    """Request schema for one chat message.

    Attributes:
        message: Raw user text.
        user_id: Authenticated user. Anonymous chats are not stored.
        user_email: Required together with user_id to persist the turn.
        session_id: Existing conversation; a new one is minted when absent.
    """

    message: str = Field(..., max_length=RAW_TEXT_MAX_LEN)
    user_id: Optional[str] = Field(default=None, max_length=ID_MAX_LEN)
    user_email: Optional[str] = Field(default=None, max_length=320)
    session_id: Optional[str] = Field(default=None, max_length=ID_MAX_LEN)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    platform: str = Field(default="web", max_length=32)


class VoiceRequest(CamelModel):
    """Request schema for one voice transcript."""

    transcript: str = Field(..., max_length=RAW_TEXT_MAX_LEN)
    user_id: Optional[str] = Field(default=None, max_length=ID_MAX_LEN)
    user_email: Optional[str] = Field(default=None, max_length=320)
    session_id: Optional[str] = Field(default=None, max_length=ID_MAX_LEN)
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    language: str = Field(default="en-US", max_length=16)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    platform: str = Field(default="web", max_length=32)


# ── Market data ──────────────────────────────────────────────────


class QuoteSchema(CamelModel):
    """Normalized quote for one symbol."""

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
    resolved_at: datetime


class MoverSchema(CamelModel):
    symbol: str
    name: str
    price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None


class MoversResponse(CamelModel):
    kind: str
    movers: list[MoverSchema]


class NewsItemSchema(CamelModel):
    title: str
    url: str
    source: str
    published_at: Optional[datetime] = None
    summary: str = ""
    symbol: Optional[str] = None


class NewsResponse(CamelModel):
    symbol: Optional[str] = None
    articles: list[NewsItemSchema]


# ── Conversation ─────────────────────────────────────────────────


class ChatResponse(CamelModel):
    """Response schema for one chat turn."""

    response: str
    intent: str
    suggestions: list[str]
    session_id: str
    timestamp: datetime
    stock_data: Optional[QuoteSchema] = None
    additional_data: Optional[dict[str, Any]] = None


class VoiceResponse(CamelModel):
    """Response schema for one voice turn."""

    response: str
    intent: str
    intent_data: Any = None
    confidence: float
    entities: dict[str, Any]
    suggestions: list[str]
    session_id: str
    timestamp: datetime
    stock_data: Optional[QuoteSchema] = None
    additional_data: Optional[dict[str, Any]] = None
    is_voice_response: bool = True


class StartSessionResponse(CamelModel):
    session_id: str
    message: str
    suggestions: list[str]
    timestamp: datetime


class EndSessionResponse(CamelModel):
    success: bool
    session_id: str


class SuggestionsResponse(CamelModel):
    suggestions: list[str]


class MessageSchema(CamelModel):
    """One stored message."""

    id: str
    text: str
    sender: str
    type: str
    timestamp: datetime
    stock_data: Optional[dict[str, Any]] = None
    additional_data: Optional[dict[str, Any]] = None
    voice_metadata: Optional[dict[str, Any]] = None


class SessionMetadataSchema(CamelModel):
    started_at: datetime
    last_active_at: datetime
    total_messages: int
    is_active: bool
    platform: str
    user_agent: Optional[str] = None
    ended_at: Optional[datetime] = None


class SessionSchema(CamelModel):
    user_id: str
    session_id: str
    user_email: str
    messages: list[MessageSchema]
    metadata: SessionMetadataSchema


class PaginationSchema(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class HistoryResponse(CamelModel):
    """Response schema for paginated conversation history."""

    sessions: list[SessionSchema]
    pagination: PaginationSchema


class SessionSummarySchema(CamelModel):
    session_id: str
    last_active_at: datetime
    total_messages: int
    is_active: bool
    last_message: Optional[str] = None


class RecentSessionsResponse(CamelModel):
    sessions: list[SessionSummarySchema]


class StatisticsResponse(CamelModel):
    """Aggregated conversation statistics for a user."""

    total_sessions: int
    total_messages: int
    active_sessions: int
    average_messages_per_session: float
    first_session_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    active_days: int


# ── Service ──────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""

    status: str
    version: str


class ReadinessResponse(CamelModel):
    status: str
    version: str
    session_store: bool


class StatusResponse(CamelModel):
    """Which collaborators are configured."""

    providers: dict[str, bool]
    text_generation: bool
    session_backend: str
    quote_cache: bool


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Attributes:
        error: Human-readable error message.
        detail: Optional additional detail.
    """

    error: str
    detail: Optional[str] = None
