"""
Use case: Handle one voice transcript.

Input: ProcessVoiceCommand (transcript, recognizer confidence/language)
Output: VoiceReply (spoken reply, UI intent and its entities)
Side effects: Appends a voice_input + voice_response turn when the
    user is identified.
Failure cases: InvalidInputError for rejected transcripts.

Navigation and action intents are confirmed back to the UI, which
performs them. Every other intent is forwarded to the chat command
dispatcher for content, then re-classified with any resolved quote.
"""

import logging

from app.application.assistant.command_rules import CommandDispatcher
from app.application.assistant.dtos import ProcessVoiceCommand, VoiceReply
from app.application.assistant.turn_recorder import TurnRecorder, timestamp_after
from app.domain.assistant.entities import (
    ClientMeta,
    HandlerResult,
    Intent,
    IntentType,
    Message,
    MessageType,
    Sender,
    VoiceMetadata,
    new_session_id,
    utc_now,
)
from app.domain.assistant.message_validator import MessageValidator
from app.domain.assistant.voice_intent_classifier import VoiceIntentClassifier

logger = logging.getLogger(__name__)

ACTION_LABELS = {
    "buy": "buy",
    "sell": "sell",
    "add_to_watchlist": "add to your watchlist",
    "remove_from_watchlist": "remove from your watchlist",
    "set_alert": "set a price alert for",
}


def _ui_reply(intent: Intent) -> HandlerResult:
    if intent.type is IntentType.NAVIGATE:
        return HandlerResult(
            narrative_context=f"Opening {intent.route}.",
            additional_data={"type": "navigation", "route": intent.data},
            intent="navigate",
        )
    label = ACTION_LABELS.get(intent.action or "", intent.action or "do that")
    target = intent.stock_symbol or "a stock"
    return HandlerResult(
        narrative_context=f"Okay, let's {label} {target}. Please confirm on screen.",
        additional_data={
            "type": "action",
            "action": intent.action,
            "stockSymbol": intent.stock_symbol,
        },
        intent="action",
    )


class ProcessVoiceCommandUseCase:
    """Orchestrates voice classification, dispatch and persistence."""

    def __init__(
        self,
        validator: MessageValidator,
        classifier: VoiceIntentClassifier,
        dispatcher: CommandDispatcher,
        recorder: TurnRecorder,
    ) -> None:
        self._validator = validator
        self._classifier = classifier
        self._dispatcher = dispatcher
        self._recorder = recorder

    async def execute(self, command: ProcessVoiceCommand) -> VoiceReply:
        """Run the voice use case.

        Args:
            command: Transcript and recognizer metadata.

        Returns:
            Reply text plus the UI intent.
        """
        text = self._validator.validate(command.transcript)
        session_id = command.session_id or new_session_id()
        received_at = utc_now()

        intent = self._classifier.classify(text)
        logger.info(
            "Voice intent %s (%.2f) for session %s",
            intent.type.value,
            intent.confidence,
            session_id,
        )

        if intent.type in (IntentType.NAVIGATE, IntentType.ACTION):
            result = _ui_reply(intent)
        else:
            history = await self._recorder.recent_messages(command.user_id, session_id)
            result = await self._dispatcher.dispatch(text, history)
            if result.stock_data is not None:
                intent = self._classifier.classify(text, record=result.stock_data)

        stock_data = result.stock_data.to_dict() if result.stock_data else None
        user_message = Message(
            text=text,
            sender=Sender.USER,
            type=MessageType.VOICE_INPUT,
            voice_metadata=VoiceMetadata(
                is_voice_input=True,
                confidence=command.confidence,
                language=command.language,
                intent=intent.type.value,
            ),
            timestamp=received_at,
        )
        assistant_message = Message(
            text=result.narrative_context,
            sender=Sender.ASSISTANT,
            type=MessageType.VOICE_RESPONSE,
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

        return VoiceReply(
            response=result.narrative_context,
            intent=intent.type.value,
            intent_data=intent.data,
            confidence=intent.confidence,
            entities=intent.entities(),
            session_id=session_id,
            timestamp=assistant_message.timestamp,
            suggestions=list(result.suggestions),
            stock_data=result.stock_data,
            additional_data=result.additional_data,
        )
