"""
Use case: Start a new chat session.

Input: None
Output: StartSessionResult (fresh session ID, welcome message, starter prompts)
Side effects: None. The session is created in the store by its first turn.
"""

from app.application.assistant.dtos import StartSessionResult
from app.application.assistant.suggestions import STARTER_SUGGESTIONS
from app.domain.assistant.entities import new_session_id, utc_now

WELCOME_MESSAGE = (
    "👋 Hi! I'm your trading assistant. Ask me about stock prices, market "
    "movers, news or trading concepts."
)


class StartChatSessionUseCase:
    """Mints a session ID and returns the welcome message."""

    def execute(self) -> StartSessionResult:
        return StartSessionResult(
            session_id=new_session_id(),
            message=WELCOME_MESSAGE,
            suggestions=list(STARTER_SUGGESTIONS),
            timestamp=utc_now(),
        )
