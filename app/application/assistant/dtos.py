"""
Data Transfer Objects for the assistant application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from app.domain.assistant.entities import Message, QuoteRecord


@dataclass(frozen=True)
class CommandRequest:
    """Input handed to a command handler.

    Attributes:
        text: Validated user text.
        match: Regex match of the rule that fired, None for the fallback.
        history: Recent messages of the session, oldest first.
    """

    text: str
    match: Optional[re.Match] = None
    history: tuple[Message, ...] = ()

    def group(self, name: str) -> Optional[str]:
        """Return a named capture group, or None when absent or empty."""
        if self.match is None:
            return None
        try:
            value = self.match.group(name)
        except IndexError:
            return None
        return value.strip() if value and value.strip() else None


@dataclass(frozen=True)
class SendChatMessageCommand:
    """Input DTO for one chat turn.

    Attributes:
        message: Raw user text.
        user_id: Authenticated user, if any.
        user_email: Needed to persist the turn.
        session_id: Existing session; a new one is minted when absent.
        user_agent: Recorded on session creation.
        platform: Recorded on session creation.
    """

    message: str
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    session_id: Optional[str] = None
    user_agent: Optional[str] = None
    platform: str = "web"


@dataclass(frozen=True)
class ChatReply:
    """Output DTO for one chat turn."""

    response: str
    session_id: str
    timestamp: datetime
    intent: str
    suggestions: list[str] = field(default_factory=list)
    stock_data: Optional[QuoteRecord] = None
    additional_data: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class ProcessVoiceCommand:
    """Input DTO for one voice turn.

    Attributes:
        transcript: Speech-to-text output.
        confidence: Recognition confidence reported by the client.
        language: BCP-47 language tag of the recognizer.
    """

    transcript: str
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    session_id: Optional[str] = None
    confidence: Optional[float] = None
    language: str = "en-US"
    user_agent: Optional[str] = None
    platform: str = "web"


@dataclass(frozen=True)
class VoiceReply:
    """Output DTO for one voice turn."""

    response: str
    intent: str
    intent_data: Any
    confidence: float
    entities: dict[str, Any]
    session_id: str
    timestamp: datetime
    suggestions: list[str] = field(default_factory=list)
    stock_data: Optional[QuoteRecord] = None
    additional_data: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class GetChatHistoryQuery:
    """Input DTO for paginated conversation history."""

    user_id: str
    session_id: Optional[str] = None
    page: int = 1
    limit: int = 20
    include_messages: bool = True
    message_limit: Optional[int] = 50


@dataclass(frozen=True)
class SessionKey:
    """Identifies one conversation: (user_id, session_id)."""

    user_id: str
    session_id: str


@dataclass(frozen=True)
class StartSessionResult:
    """Output DTO for an explicitly started session."""

    session_id: str
    message: str
    suggestions: list[str]
    timestamp: datetime
