"""
Use case: Delete a chat session and its messages.

Input: SessionKey (user_id, session_id)
Output: None
Side effects: Removes the session from the store.
Failure cases: SessionNotFoundError if the session does not exist.
"""

import logging

from app.application.assistant.dtos import SessionKey
from app.domain.assistant.errors import SessionNotFoundError
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class DeleteChatSessionUseCase:
    """Explicit, user-requested removal of one conversation."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    def execute(self, key: SessionKey) -> None:
        if not self._session_repo.delete_session(key.user_id, key.session_id):
            raise SessionNotFoundError(key.user_id, key.session_id)
        logger.info("Deleted chat session %s", key.session_id)
