"""
Domain-specific errors for the assistant bounded context.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class AssistantDomainError(Exception):
    """Base error for all assistant domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class InvalidInputError(AssistantDomainError):
    """Raised when a chat message or symbol is rejected before dispatch."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid input: {reason}")
        self.reason = reason


class InvalidMoverKindError(AssistantDomainError):
    """Raised when a movers list other than gainers/losers is requested."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            f"Invalid movers kind: {kind}. Must be 'gainers' or 'losers'."
        )
        self.kind = kind


class QuoteNotFoundError(AssistantDomainError):
    """Raised when every provider and variant failed for a direct quote lookup."""

    def __init__(self, symbol: str) -> None:
        super().__init__(f"No market data found for symbol: {symbol}")
        self.symbol = symbol


class SessionNotFoundError(AssistantDomainError):
    """Raised when a chat session does not exist for the given user."""

    def __init__(self, user_id: str, session_id: str) -> None:
        super().__init__(f"Chat session not found: {session_id}")
        self.user_id = user_id
        self.session_id = session_id


class ProviderUnavailableError(AssistantDomainError):
    """Raised by a market data adapter for a timeout, HTTP error or bad payload."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"Provider {provider} unavailable: {reason}")
        self.provider = provider
        self.reason = reason


class PersistenceError(AssistantDomainError):
    """Raised when the conversation store cannot complete a write or read."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Conversation store failure: {reason}")
        self.reason = reason


class TextGenerationError(AssistantDomainError):
    """Raised when the AI text-generation service fails or is disabled."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Text generation failed: {reason}")
        self.reason = reason
