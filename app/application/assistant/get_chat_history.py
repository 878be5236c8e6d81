"""
Use case: Retrieve a user's conversation history.

Input: GetChatHistoryQuery (user, optional session, paging, message limit)
Output: HistoryPage
Side effects: None (read-only query).
Failure cases: PersistenceError when the store is unreachable.
"""

import logging

from app.application.assistant.dtos import GetChatHistoryQuery
from app.domain.assistant.entities import HistoryPage
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class GetChatHistoryUseCase:
    """Read-only query over the session store."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    def execute(self, query: GetChatHistoryQuery) -> HistoryPage:
        logger.info(
            "Retrieving chat history: user=%s, session=%s, page=%d, limit=%d",
            query.user_id,
            query.session_id,
            query.page,
            query.limit,
        )
        return self._session_repo.get_history(
            query.user_id,
            session_id=query.session_id,
            page=query.page,
            limit=query.limit,
            include_messages=query.include_messages,
            message_limit=query.message_limit,
        )
