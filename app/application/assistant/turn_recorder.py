"""
Conversation persistence shared by the chat and voice use cases.

Persistence is best effort: a store failure is logged and the reply is
still returned, leaving a visible gap in later history reads.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from app.domain.assistant.entities import ClientMeta, Message, utc_now
from app.domain.assistant.errors import PersistenceError
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)

HISTORY_CONTEXT_MESSAGES = 10


def timestamp_after(previous: datetime) -> datetime:
    """Return now, nudged forward so it is strictly later than ``previous``."""
    now = utc_now()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class TurnRecorder:
    """Appends turns and reads recent context without failing the request."""

    def __init__(self, session_repo: ChatSessionRepository) -> None:
        self._session_repo = session_repo

    async def recent_messages(
        self, user_id: Optional[str], session_id: str
    ) -> tuple[Message, ...]:
        """Return the last few messages of a session, oldest first."""
        if not user_id:
            return ()
        try:
            session = await asyncio.to_thread(
                self._session_repo.get_session, user_id, session_id
            )
        except PersistenceError:
            logger.exception("Could not load context for session %s", session_id)
            return ()
        if session is None:
            return ()
        return session.messages[-HISTORY_CONTEXT_MESSAGES:]

    async def record(
        self,
        user_id: Optional[str],
        user_email: Optional[str],
        session_id: str,
        user_message: Message,
        assistant_message: Message,
        client_meta: ClientMeta,
    ) -> bool:
        """Persist one turn. Returns False when it was skipped or failed."""
        if not user_id or not user_email:
            logger.debug("Anonymous turn in session %s not persisted", session_id)
            return False
        try:
            snapshot = await asyncio.to_thread(
                self._session_repo.append_turn,
                user_id,
                session_id,
                user_email,
                user_message,
                assistant_message,
                client_meta,
            )
        except PersistenceError:
            logger.exception("Turn not persisted for session %s", session_id)
            return False

        logger.debug(
            "Session %s now holds %d messages", session_id, snapshot.total_messages
        )
        return True
