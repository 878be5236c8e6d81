"""
Adapter: In-process chat session repository.

Implements ChatSessionRepository with a dict guarded by a lock.
Used for development, tests and single-process deployments where
history may be lost on restart.
"""

import logging
import threading
from dataclasses import replace
from typing import Optional

from app.domain.assistant.entities import (
    ChatSession,
    ChatStatistics,
    ClientMeta,
    HistoryPage,
    Message,
    SessionMetadata,
    SessionSnapshot,
    SessionSummary,
    utc_now,
)
from app.domain.assistant.history import build_statistics, message_preview, stamp_after
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)


class InMemoryChatSessionRepository(ChatSessionRepository):
    """Keeps every session in memory, keyed by (user_id, session_id).

    Sessions are immutable values; each write swaps in a new value while
    holding the lock, so concurrent appends for the same key never lose
    a message.
    """

    def __init__(self) -> None:
        self._sessions: dict[tuple[str, str], ChatSession] = {}
        self._lock = threading.Lock()

    def append_turn(
        self,
        user_id: str,
        session_id: str,
        user_email: str,
        user_message: Message,
        assistant_message: Message,
        client_meta: ClientMeta,
    ) -> SessionSnapshot:
        key = (user_id, session_id)
        with self._lock:
            existing = self._sessions.get(key)
            created = existing is None
            if existing is None:
                existing = ChatSession(
                    user_id=user_id,
                    session_id=session_id,
                    user_email=user_email,
                    messages=(),
                    metadata=SessionMetadata(
                        started_at=user_message.timestamp,
                        last_active_at=user_message.timestamp,
                        platform=client_meta.platform,
                        user_agent=client_meta.user_agent,
                    ),
                )

            previous = existing.messages[-1].timestamp if existing.messages else None
            user_message, assistant_message = stamp_after(previous, user_message, assistant_message)
            messages = existing.messages + (user_message, assistant_message)
            session = replace(
                existing,
                user_email=user_email,
                messages=messages,
                metadata=replace(
                    existing.metadata,
                    last_active_at=utc_now(),
                    total_messages=len(messages),
                ),
            )
            self._sessions[key] = session

        if created:
            logger.info("Created chat session %s for user %s", session_id, user_id)

        return SessionSnapshot(
            user_id=user_id,
            session_id=session_id,
            total_messages=session.metadata.total_messages,
            last_active_at=session.metadata.last_active_at,
            is_active=session.metadata.is_active,
            created=created,
        )

    def get_history(
        self,
        user_id: str,
        session_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        include_messages: bool = True,
        message_limit: Optional[int] = 50,
    ) -> HistoryPage:
        matching = [
            session
            for session in self._user_sessions(user_id)
            if session_id is None or session.session_id == session_id
        ]
        start = (page - 1) * limit
        selected = matching[start:start + limit]

        if include_messages:
            selected = [session.truncated(message_limit) for session in selected]
        else:
            selected = [session.without_messages() for session in selected]

        return HistoryPage(sessions=selected, page=page, limit=limit, total=len(matching))

    def get_session(self, user_id: str, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            return self._sessions.get((user_id, session_id))

    def end_session(self, user_id: str, session_id: str) -> bool:
        key = (user_id, session_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                return False
            if not session.metadata.is_active:
                return True
            self._sessions[key] = replace(
                session,
                metadata=replace(session.metadata, is_active=False, ended_at=utc_now()),
            )
        logger.info("Ended chat session %s for user %s", session_id, user_id)
        return True

    def delete_session(self, user_id: str, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop((user_id, session_id), None)
        return removed is not None

    def get_statistics(self, user_id: str) -> ChatStatistics:
        return build_statistics(s.metadata for s in self._user_sessions(user_id))

    def get_recent_sessions(self, user_id: str, limit: int = 10) -> list[SessionSummary]:
        return [
            SessionSummary(
                session_id=session.session_id,
                last_active_at=session.metadata.last_active_at,
                total_messages=session.metadata.total_messages,
                is_active=session.metadata.is_active,
                last_message_preview=(
                    message_preview(session.messages[-1].text) if session.messages else None
                ),
            )
            for session in self._user_sessions(user_id)[:limit]
        ]

    def _user_sessions(self, user_id: str) -> list[ChatSession]:
        """Return a user's sessions, most recently active first."""
        with self._lock:
            sessions = [s for (uid, _), s in self._sessions.items() if uid == user_id]
        return sorted(sessions, key=lambda s: s.metadata.last_active_at, reverse=True)
