"""
Domain service: inbound message validation.

Rejects empty, oversized, spam-like or injection-like text before it
reaches the command dispatcher. Pure logic, no IO.
"""

import re

from app.domain.assistant.errors import InvalidInputError

DEFAULT_MIN_LENGTH = 2
DEFAULT_MAX_LENGTH = 1000

_SPAM_PATTERNS = (
    re.compile(r"(.)\1{9,}"),
    re.compile(r"[A-Z]{20,}"),
    re.compile(r"[!@#$%^&*()_+=\[\]{};':\"\\|,.<>/?-]{5,}"),
)

_INJECTION_PATTERNS = (
    re.compile(r"<script|javascript:|data:text/html", re.IGNORECASE),
    re.compile(r"union\s+select|drop\s+table|insert\s+into|delete\s+from", re.IGNORECASE),
    re.compile(r"\$\{|#\{|<%|%>"),
)

_WHITESPACE = re.compile(r"\s+")


class MessageValidator:
    """Validates and normalizes chat and voice text."""

    def __init__(
        self,
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> None:
        self._min_length = min_length
        self._max_length = max_length

    def validate(self, text: str | None) -> str:
        """Return the sanitized message.

        Raises:
            InvalidInputError: If the message is empty, out of bounds,
                looks like spam or carries markup/SQL/template injection.
        """
        if text is None or not text.strip():
            raise InvalidInputError("message is empty")

        cleaned = _WHITESPACE.sub(" ", text.strip())

        if len(cleaned) < self._min_length:
            raise InvalidInputError(
                f"message must be at least {self._min_length} characters"
            )
        if len(cleaned) > self._max_length:
            raise InvalidInputError(
                f"message must be at most {self._max_length} characters"
            )
        if any(pattern.search(cleaned) for pattern in _INJECTION_PATTERNS):
            raise InvalidInputError("message contains disallowed content")
        if any(pattern.search(cleaned) for pattern in _SPAM_PATTERNS):
            raise InvalidInputError("message looks like spam")

        return cleaned
