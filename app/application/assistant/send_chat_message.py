"""
Use case: Answer one chat message.

Input: SendChatMessageCommand (message, optional user/session identity)
Output: ChatReply (reply text, resolved data, suggestions, session ID)
Side effects: Appends the user + assistant turn to the session store
    when the user is identified.
Failure cases: InvalidInputError for rejected text. Unresolved subjects,
    exhausted providers and store failures degrade the reply, they do
    not fail the request.
"""

import logging

from app.application.assistant.command_rules import CommandDispatcher
from app.application.assistant.dtos import ChatReply, SendChatMessageCommand
from app.application.assistant.turn_recorder import TurnRecorder, timestamp_after
from app.domain.assistant.entities import (
    ClientMeta,
    Message,
    MessageType,
    Sender,
    new_session_id,
    utc_now,
)
from app.domain.assistant.message_validator import MessageValidator

logger = logging.getLogger(__name__)


class SendChatMessageUseCase:
    """Orchestrates validation, dispatch and persistence of a chat turn."""

    def __init__(
        self,
        validator: MessageValidator,
        dispatcher: CommandDispatcher,
        recorder: TurnRecorder,
    ) -> None:
        """Initialize the use case.

        Args:
            validator: Rejects empty, oversized or unsafe text.
            dispatcher: Routes text to a command handler.
            recorder: Best-effort session persistence.
        """
        self._validator = validator
        self._dispatcher = dispatcher
        self._recorder = recorder

    async def execute(self, command: SendChatMessageCommand) -> ChatReply:
        """Run the chat use case.

        Args:
            command: The inbound message and caller identity.

        Returns:
            The composed reply.
        """
        text = self._validator.validate(command.message)
        session_id = command.session_id or new_session_id()
        logger.info("Chat message received for session %s", session_id)

        received_at = utc_now()
        history = await self._recorder.recent_messages(command.user_id, session_id)
        result = await self._dispatcher.dispatch(text, history)

        stock_data = result.stock_data.to_dict() if result.stock_data else None
        user_message = Message(
            text=text,
            sender=Sender.USER,
            type=MessageType.TEXT,
            timestamp=received_at,
        )
        assistant_message = Message(
            text=result.narrative_context,
            sender=Sender.ASSISTANT,
            type=MessageType.TEXT,
            stock_data=stock_data,
            additional_data=result.additional_data,
            timestamp=timestamp_after(received_at),
        )

        await self._recorder.record(
            command.user_id,
            command.user_email,
            session_id,
            user_message,
            assistant_message,
            ClientMeta(platform=command.platform, user_agent=command.user_agent),
        )

        return ChatReply(
            response=result.narrative_context,
            session_id=session_id,
            timestamp=assistant_message.timestamp,
            intent=result.intent,
            suggestions=list(result.suggestions),
            stock_data=result.stock_data,
            additional_data=result.additional_data,
        )
