"""
Adapter: SQL chat session repository.

Implements ChatSessionRepository on two tables:
  chat_sessions  one row per (user_id, session_id) with the metadata
  chat_messages  one row per message, ordered by position

append_turn runs in a single transaction: insert-if-absent on the
session row, bump its counter (which row-locks it), then insert both
messages at the positions the counter reserved, stamped no earlier
than the message stored just before them. Concurrent turns for
the same key therefore append rather than overwrite.

Works on SQLite (3.24+) and PostgreSQL.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.domain.assistant.entities import (
    ChatSession,
    ChatStatistics,
    ClientMeta,
    HistoryPage,
    Message,
    MessageType,
    Sender,
    SessionMetadata,
    SessionSnapshot,
    SessionSummary,
    VoiceMetadata,
    utc_now,
)
from app.domain.assistant.errors import PersistenceError
from app.domain.assistant.history import build_statistics, message_preview, stamp_after
from app.domain.assistant.ports import ChatSessionRepository

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS chat_sessions (
        user_id        VARCHAR(128) NOT NULL,
        session_id     VARCHAR(128) NOT NULL,
        user_email     VARCHAR(320) NOT NULL,
        started_at     VARCHAR(40)  NOT NULL,
        last_active_at VARCHAR(40)  NOT NULL,
        total_messages INTEGER      NOT NULL DEFAULT 0,
        is_active      BOOLEAN      NOT NULL DEFAULT TRUE,
        platform       VARCHAR(32)  NOT NULL DEFAULT 'web',
        user_agent     TEXT,
        ended_at       VARCHAR(40),
        PRIMARY KEY (user_id, session_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS chat_messages (
        user_id         VARCHAR(128) NOT NULL,
        session_id      VARCHAR(128) NOT NULL,
        position        INTEGER      NOT NULL,
        message_id      VARCHAR(64)  NOT NULL,
        body            TEXT         NOT NULL,
        sender          VARCHAR(16)  NOT NULL,
        message_type    VARCHAR(32)  NOT NULL,
        created_at      VARCHAR(40)  NOT NULL,
        stock_data      TEXT,
        additional_data TEXT,
        voice_metadata  TEXT,
        PRIMARY KEY (user_id, session_id, position)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_chat_sessions_user_activity
        ON chat_sessions (user_id, last_active_at)
    """,
)

_SESSION_COLUMNS = (
    "user_id, session_id, user_email, started_at, last_active_at, "
    "total_messages, is_active, platform, user_agent, ended_at"
)


def _ts(value: datetime) -> str:
    """Fixed-width UTC timestamp so text ordering matches time ordering."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _dump(value: Any) -> Optional[str]:
    return json.dumps(value, default=str) if value is not None else None


def _load(value: Optional[str]) -> Any:
    return json.loads(value) if value else None


class SqlChatSessionRepository(ChatSessionRepository):
    """SQLAlchemy Core implementation of the chat session store."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    def create_schema(self) -> None:
        """Create both tables if they do not exist yet."""
        try:
            self._ensure_schema()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"schema creation failed: {exc}") from exc

    def _ensure_schema(self) -> None:
        """Create the tables on first use. A failed attempt is retried on the next call."""
        if self._schema_ready:
            return
        with self._schema_lock:
            if self._schema_ready:
                return
            with self._engine.begin() as conn:
                for statement in _SCHEMA:
                    conn.execute(text(statement))
            self._schema_ready = True
        logger.info("Chat history schema ready.")

    def append_turn(
        self,
        user_id: str,
        session_id: str,
        user_email: str,
        user_message: Message,
        assistant_message: Message,
        client_meta: ClientMeta,
    ) -> SessionSnapshot:
        key = {"user_id": user_id, "session_id": session_id}
        now = _ts(utc_now())

        try:
            self._ensure_schema()
            with self._engine.begin() as conn:
                inserted = conn.execute(
                    text(
                        """
                        INSERT INTO chat_sessions
                            (user_id, session_id, user_email, started_at,
                             last_active_at, total_messages, is_active,
                             platform, user_agent)
                        VALUES
                            (:user_id, :session_id, :user_email, :started_at,
                             :started_at, 0, TRUE, :platform, :user_agent)
                        ON CONFLICT (user_id, session_id) DO NOTHING
                        """
                    ),
                    {
                        **key,
                        "user_email": user_email,
                        "started_at": _ts(user_message.timestamp),
                        "platform": client_meta.platform,
                        "user_agent": client_meta.user_agent,
                    },
                )
                created = inserted.rowcount == 1

                conn.execute(
                    text(
                        """
                        UPDATE chat_sessions
                        SET total_messages = total_messages + 2,
                            last_active_at = :now,
                            user_email = :user_email
                        WHERE user_id = :user_id AND session_id = :session_id
                        """
                    ),
                    {**key, "now": now, "user_email": user_email},
                )
                row = conn.execute(
                    text(
                        """
                        SELECT total_messages, last_active_at, is_active
                        FROM chat_sessions
                        WHERE user_id = :user_id AND session_id = :session_id
                        """
                    ),
                    key,
                ).one()

                first_position = row.total_messages - 2
                previous = conn.execute(
                    text(
                        """
                        SELECT created_at FROM chat_messages
                        WHERE user_id = :user_id AND session_id = :session_id
                          AND position = :position
                        """
                    ),
                    {**key, "position": first_position - 1},
                ).scalar()
                user_message, assistant_message = stamp_after(
                    _parse_ts(previous), user_message, assistant_message
                )
                conn.execute(
                    text(
                        """
                        INSERT INTO chat_messages
                            (user_id, session_id, position, message_id, body,
                             sender, message_type, created_at, stock_data,
                             additional_data, voice_metadata)
                        VALUES
                            (:user_id, :session_id, :position, :message_id, :body,
                             :sender, :message_type, :created_at, :stock_data,
                             :additional_data, :voice_metadata)
                        """
                    ),
                    [
                        self._message_params(key, first_position, user_message),
                        self._message_params(key, first_position + 1, assistant_message),
                    ],
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"append failed for session {session_id}: {exc}") from exc

        if created:
            logger.info("Created chat session %s for user %s", session_id, user_id)

        return SessionSnapshot(
            user_id=user_id,
            session_id=session_id,
            total_messages=row.total_messages,
            last_active_at=_parse_ts(row.last_active_at),
            is_active=bool(row.is_active),
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
        filters = "WHERE user_id = :user_id"
        params: dict[str, Any] = {"user_id": user_id}
        if session_id is not None:
            filters += " AND session_id = :session_id"
            params["session_id"] = session_id

        try:
            self._ensure_schema()
            with self._engine.connect() as conn:
                total = conn.execute(
                    text(f"SELECT COUNT(*) FROM chat_sessions {filters}"), params
                ).scalar_one()
                rows = conn.execute(
                    text(
                        f"""
                        SELECT {_SESSION_COLUMNS}
                        FROM chat_sessions {filters}
                        ORDER BY last_active_at DESC
                        LIMIT :limit OFFSET :offset
                        """
                    ),
                    {**params, "limit": limit, "offset": (page - 1) * limit},
                ).all()

                sessions = []
                for row in rows:
                    messages: tuple[Message, ...] = ()
                    if include_messages:
                        messages = self._load_messages(
                            conn, row.user_id, row.session_id, message_limit
                        )
                    sessions.append(self._to_session(row, messages))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"history read failed for user {user_id}: {exc}") from exc

        return HistoryPage(sessions=sessions, page=page, limit=limit, total=total)

    def get_session(self, user_id: str, session_id: str) -> Optional[ChatSession]:
        try:
            self._ensure_schema()
            with self._engine.connect() as conn:
                row = self._session_row(conn, user_id, session_id)
                if row is None:
                    return None
                messages = self._load_messages(conn, user_id, session_id, None)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"session read failed for {session_id}: {exc}") from exc
        return self._to_session(row, messages)

    def end_session(self, user_id: str, session_id: str) -> bool:
        try:
            self._ensure_schema()
            with self._engine.begin() as conn:
                if self._session_row(conn, user_id, session_id) is None:
                    return False
                ended = conn.execute(
                    text(
                        """
                        UPDATE chat_sessions
                        SET is_active = FALSE, ended_at = :ended_at
                        WHERE user_id = :user_id AND session_id = :session_id
                          AND is_active = TRUE
                        """
                    ),
                    {"user_id": user_id, "session_id": session_id, "ended_at": _ts(utc_now())},
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"end failed for session {session_id}: {exc}") from exc

        if ended.rowcount:
            logger.info("Ended chat session %s for user %s", session_id, user_id)
        return True

    def delete_session(self, user_id: str, session_id: str) -> bool:
        key = {"user_id": user_id, "session_id": session_id}
        try:
            self._ensure_schema()
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        "DELETE FROM chat_messages "
                        "WHERE user_id = :user_id AND session_id = :session_id"
                    ),
                    key,
                )
                deleted = conn.execute(
                    text(
                        "DELETE FROM chat_sessions "
                        "WHERE user_id = :user_id AND session_id = :session_id"
                    ),
                    key,
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"delete failed for session {session_id}: {exc}") from exc
        return deleted.rowcount > 0

    def get_statistics(self, user_id: str) -> ChatStatistics:
        try:
            self._ensure_schema()
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(f"SELECT {_SESSION_COLUMNS} FROM chat_sessions WHERE user_id = :user_id"),
                    {"user_id": user_id},
                ).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"statistics failed for user {user_id}: {exc}") from exc
        return build_statistics(self._to_metadata(row) for row in rows)

    def get_recent_sessions(self, user_id: str, limit: int = 10) -> list[SessionSummary]:
        try:
            self._ensure_schema()
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        """
                        SELECT s.session_id, s.last_active_at, s.total_messages,
                               s.is_active, m.body AS last_body
                        FROM chat_sessions s
                        LEFT JOIN chat_messages m
                          ON m.user_id = s.user_id
                         AND m.session_id = s.session_id
                         AND m.position = s.total_messages - 1
                        WHERE s.user_id = :user_id
                        ORDER BY s.last_active_at DESC
                        LIMIT :limit
                        """
                    ),
                    {"user_id": user_id, "limit": limit},
                ).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"recent sessions failed for user {user_id}: {exc}") from exc

        return [
            SessionSummary(
                session_id=row.session_id,
                last_active_at=_parse_ts(row.last_active_at),
                total_messages=row.total_messages,
                is_active=bool(row.is_active),
                last_message_preview=message_preview(row.last_body),
            )
            for row in rows
        ]

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Chat history database unreachable", exc_info=True)
            return False
        return True

    # ── Row mapping ──────────────────────────────────────────────

    @staticmethod
    def _session_row(conn, user_id: str, session_id: str):
        return conn.execute(
            text(
                f"""
                SELECT {_SESSION_COLUMNS} FROM chat_sessions
                WHERE user_id = :user_id AND session_id = :session_id
                """
            ),
            {"user_id": user_id, "session_id": session_id},
        ).first()

    @staticmethod
    def _load_messages(
        conn, user_id: str, session_id: str, message_limit: Optional[int]
    ) -> tuple[Message, ...]:
        """Load messages oldest first, keeping only the newest ``message_limit``."""
        if message_limit is not None and message_limit <= 0:
            return ()
        query = """
            SELECT message_id, body, sender, message_type, created_at,
                   stock_data, additional_data, voice_metadata
            FROM chat_messages
            WHERE user_id = :user_id AND session_id = :session_id
            ORDER BY position DESC
        """
        params: dict[str, Any] = {"user_id": user_id, "session_id": session_id}
        if message_limit is not None:
            query += " LIMIT :message_limit"
            params["message_limit"] = message_limit

        rows = conn.execute(text(query), params).all()
        return tuple(SqlChatSessionRepository._to_message(row) for row in reversed(rows))

    @staticmethod
    def _message_params(key: dict[str, str], position: int, message: Message) -> dict[str, Any]:
        return {
            **key,
            "position": position,
            "message_id": message.id,
            "body": message.text,
            "sender": message.sender.value,
            "message_type": message.type.value,
            "created_at": _ts(message.timestamp),
            "stock_data": _dump(message.stock_data),
            "additional_data": _dump(message.additional_data),
            "voice_metadata": (
                _dump(message.voice_metadata.to_dict()) if message.voice_metadata else None
            ),
        }

    @staticmethod
    def _to_message(row) -> Message:
        voice = _load(row.voice_metadata)
        return Message(
            id=row.message_id,
            text=row.body,
            sender=Sender(row.sender),
            type=MessageType(row.message_type),
            timestamp=_parse_ts(row.created_at),
            stock_data=_load(row.stock_data),
            additional_data=_load(row.additional_data),
            voice_metadata=(
                VoiceMetadata(
                    is_voice_input=voice.get("isVoiceInput", True),
                    confidence=voice.get("confidence"),
                    language=voice.get("language", "en-US"),
                    intent=voice.get("intent"),
                )
                if voice
                else None
            ),
        )

    @staticmethod
    def _to_metadata(row) -> SessionMetadata:
        return SessionMetadata(
            started_at=_parse_ts(row.started_at),
            last_active_at=_parse_ts(row.last_active_at),
            total_messages=row.total_messages,
            is_active=bool(row.is_active),
            platform=row.platform,
            user_agent=row.user_agent,
            ended_at=_parse_ts(row.ended_at),
        )

    @classmethod
    def _to_session(cls, row, messages: tuple[Message, ...]) -> ChatSession:
        return ChatSession(
            user_id=row.user_id,
            session_id=row.session_id,
            user_email=row.user_email,
            messages=messages,
            metadata=cls._to_metadata(row),
        )
