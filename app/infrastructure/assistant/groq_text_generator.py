"""
Adapter: Groq-backed text generation.

Implements TextGenerationPort for free-form questions the command
rules do not recognise. Disabled when no API key is configured.
"""

import logging
from typing import Optional

from groq import AsyncGroq, GroqError

from app.domain.assistant.entities import Message, Sender
from app.domain.assistant.errors import TextGenerationError
from app.domain.assistant.ports import TextGenerationPort

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise, friendly stock market assistant. Explain concepts "
    "in plain language, never promise returns, and remind users that "
    "investing carries risk when giving anything resembling advice."
)


class GroqTextGenerator(TextGenerationPort):
    """Chat completions through the Groq API."""

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        max_tokens: int = 1024,
        temperature: float = 0.7,
        client: Optional[AsyncGroq] = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._client = client
        if self._client is None and api_key:
            self._client = AsyncGroq(api_key=api_key)
            logger.info("Groq client initialized (model=%s)", model)

    @property
    def is_enabled(self) -> bool:
        return self._client is not None

    async def generate(self, prompt: str, history: list[Message]) -> str:
        if self._client is None:
            raise TextGenerationError("Groq API key not configured")

        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for message in history:
            role = "user" if message.sender is Sender.USER else "assistant"
            messages.append({"role": role, "content": message.text})
        messages.append({"role": "user", "content": prompt})

        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                top_p=0.9,
                stream=False,
            )
        except GroqError as exc:
            logger.error("Groq API call failed: %s", exc)
            raise TextGenerationError(str(exc)) from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise TextGenerationError("empty completion")
        return content.strip()
