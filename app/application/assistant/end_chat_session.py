"""
Use case: End a chat session.

Input: SessionKey (user_id, session_id)
Output: None
Side effects: Sets is_active=False and ended_at=now on first call.
    Repeated calls are no-ops.
Failure cases: SessionNotFoundError if the session does not exist.
"""

import logging

from app.application.assistant.dtos import SessionKey
from app.domain.assistant.errors import SessionNotFoundError
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class EndChatSessionUseCase:
    """Marks a session inactive. Idempotent."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    def execute(self, key: SessionKey) -> None:
        if not self._session_repo.end_session(key.user_id, key.session_id):
            raise SessionNotFoundError(key.user_id, key.session_id)
        logger.info("Ended chat session %s", key.session_id)
