"""
Use case: List a user's most recently active sessions.

Input: user ID, limit
Output: list[SessionSummary] with a last-message preview
Side effects: None (read-only query).
"""

from app.domain.assistant.entities import SessionSummary
from app.domain.assistant.ports import ChatSessionRepository


class GetRecentSessionsUseCase:
    """Read-only query for the "recent conversations" sidebar."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    def execute(self, user_id: str, limit: int = 10) -> list[SessionSummary]:
        return self._session_repo.get_recent_sessions(user_id, limit=limit)
