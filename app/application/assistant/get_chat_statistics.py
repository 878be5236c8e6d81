"""
Use case: Aggregate conversation statistics for a user.

Input: user ID
Output: ChatStatistics
Side effects: None (read-only query).
"""

import logging

from app.domain.assistant.entities import ChatStatistics
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class GetChatStatisticsUseCase:
    """Read-only aggregate over a user's sessions."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    def execute(self, user_id: str) -> ChatStatistics:
        logger.info("Computing chat statistics for user=%s", user_id)
        return self._session_repo.get_statistics(user_id)
