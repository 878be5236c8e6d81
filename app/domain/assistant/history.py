"""
Helpers shared by every ChatSessionRepository backend.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, Optional

from app.domain.assistant.entities import ChatStatistics, Message, SessionMetadata

PREVIEW_LENGTH = 100
TIMESTAMP_STEP = timedelta(microseconds=1)


def message_preview(text: Optional[str], length: int = PREVIEW_LENGTH) -> Optional[str]:
    """Cut a message body down to a short preview."""
    if text is None:
        return None
    if len(text) <= length:
        return text
    return text[:length] + "..."


def build_statistics(sessions: Iterable[SessionMetadata]) -> ChatStatistics:
    """Aggregate session metadata into per-user statistics.

    active_days is the number of whole days between the first session
    start and the latest activity.
    """
    sessions = list(sessions)
    if not sessions:
        return ChatStatistics()

    total_messages = sum(meta.total_messages for meta in sessions)
    first = min(meta.started_at for meta in sessions)
    last = max(meta.last_active_at for meta in sessions)

    return ChatStatistics(
        total_sessions=len(sessions),
        total_messages=total_messages,
        active_sessions=sum(1 for meta in sessions if meta.is_active),
        average_messages_per_session=round(total_messages / len(sessions), 2),
        first_session_at=first,
        last_active_at=last,
        active_days=max((last - first).days, 0),
    )


def stamp_after(
    previous: Optional[datetime],
    user_message: Message,
    assistant_message: Message,
) -> tuple[Message, Message]:
    """Return a turn's messages stamped strictly after ``previous``.

    A turn built before the store serialized the write can carry older
    timestamps than the turn stored just ahead of it. Timestamps only
    move forward, so history stays ordered by both position and time.
    """
    user_at = user_message.timestamp
    if previous is not None and user_at <= previous:
        user_at = previous + TIMESTAMP_STEP
    assistant_at = assistant_message.timestamp
    if assistant_at <= user_at:
        assistant_at = user_at + TIMESTAMP_STEP
    return (
        replace(user_message, timestamp=user_at),
        replace(assistant_message, timestamp=assistant_at),
    )
