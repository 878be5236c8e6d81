"""
Ordered chat command rule table and its dispatcher.

The table is data: a tuple of CommandRule value objects evaluated top to
bottom. The first rule with a matching pattern wins and later rules are
never consulted. Text no rule matches goes to the fallback handler.
"""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from app.application.assistant.command_handlers import CommandHandlers
from app.application.assistant.dtos import CommandRequest
from app.domain.assistant.entities import HandlerResult, Message

logger = logging.getLogger(__name__)

Handler = Callable[[CommandHandlers, CommandRequest], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class CommandRule:
    """One entry of the rule table.

    Attributes:
        name: Stable identifier, also used as the reply intent.
        patterns: Compiled regexes; any match selects the rule.
        handler: Unbound CommandHandlers method invoked on a match.
        description: Human-readable summary.
    """

    name: str
    patterns: tuple[re.Pattern[str], ...]
    handler: Handler
    description: str

    def match(self, text: str) -> Optional[re.Match[str]]:
        for pattern in self.patterns:
            found = pattern.search(text)
            if found:
                return found
        return None


def _rule(
    name: str, handler: Handler, description: str, *patterns: str, flags: int = 0
) -> CommandRule:
    return CommandRule(
        name=name,
        patterns=tuple(re.compile(p, flags) for p in patterns),
        handler=handler,
        description=description,
    )


_SUBJECT = r"(?P<subject>[A-Za-z0-9&.\s']+?)"
_END = r"[\s?.!]*$"

COMMAND_RULES: tuple[CommandRule, ...] = (
    _rule(
        "stock_comparison",
        CommandHandlers.stock_comparison,
        "Compare two stocks side by side",
        r"\b(?:compare|difference\s+between)\s+(?P<first>.+?)\s+"
        r"(?:and|with|vs\.?|versus|to)\s+(?P<second>.+?)" + _END,
        r"^\s*(?P<first>.+?)\s+(?:vs\.?|versus|compared\s+to)\s+(?P<second>.+?)" + _END,
        flags=re.IGNORECASE,
    ),
    _rule(
        "top_gainers",
        CommandHandlers.top_gainers,
        "Today's top gaining stocks",
        r"\b(?:top|best|biggest|highest)\s+(?:gainers?|performers?|winners?)\b",
        r"\bgainers?\b",
        r"\bstocks?\s+(?:going\s+)?up\s+(?:today|the\s+most)\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "top_losers",
        CommandHandlers.top_losers,
        "Today's top losing stocks",
        r"\b(?:top|worst|biggest)\s+(?:losers?|decliners?)\b",
        r"\blosers?\b",
        r"\bstocks?\s+(?:going\s+)?down\s+(?:today|the\s+most)\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "news",
        CommandHandlers.news,
        "Market-wide or symbol-specific news",
        r"\b(?:news|headlines?)\s+(?:about|for|on|of)\s+" + _SUBJECT + _END,
        r"\b(?:news|headlines?)\b",
        r"\b(?:latest|recent)\s+updates?\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "market_indices",
        CommandHandlers.market_indices,
        "Key market index reference",
        r"\b(?:nifty|sensex|bank\s*nifty)\b",
        r"\bmarket\s+(?:overview|indices|index|status)\b",
        r"\bindices\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "portfolio",
        CommandHandlers.portfolio,
        "Pointer to the portfolio page",
        r"\b(?:my\s+)?portfolio\b",
        r"\bmy\s+(?:holdings|investments|positions)\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "greeting",
        CommandHandlers.greeting,
        "Greeting",
        r"^\s*(?:hi|hello|hey|namaste|good\s+(?:morning|afternoon|evening))"
        r"(?:\s+there)?[\s!.,]*$",
        flags=re.IGNORECASE,
    ),
    _rule(
        "help",
        CommandHandlers.help,
        "What the assistant can do",
        r"^\s*help\b",
        r"\bwhat\s+can\s+you\s+do\b",
        r"\bhow\s+do\s+i\s+use\s+(?:this|you)\b",
        r"\bcommands\b",
        flags=re.IGNORECASE,
    ),
    _rule(
        "stock_quote",
        CommandHandlers.stock_quote,
        "Quote for a single stock",
        r"(?i:\b(?:price|quote|value|worth)\s+(?:of|for)\s+)" + _SUBJECT
        + r"(?i:\s+(?:stock|shares?|today|now))?" + _END,
        r"(?<![A-Za-z0-9])(?P<subject>[A-Z][A-Z0-9&]{1,14}(?:\.(?:NS|BO|NSE))?)\s+"
        r"(?i:stock|shares?|price|quote|data|info)\b",
        r"(?i:\b(?:tell\s+me\s+about|how\s+is|how's|look\s*up|check)\s+)" + _SUBJECT
        + r"(?i:\s+(?:stock|shares?|doing))?" + _END,
        r"(?i:^\s*(?:get\s+)?(?:quote|price)\s+)(?P<subject>[A-Za-z0-9&.]+)" + _END,
    ),
    _rule(
        "educational",
        CommandHandlers.educational,
        "Explain a trading concept",
        r"\b(?:what\s+is|what's|whats|explain|define|meaning\s+of|learn\s+about)\b",
        r"\b(?:pe\s+ratio|p/e|market\s+cap|eps|earnings\s+per\s+share|dividends?)\b",
        flags=re.IGNORECASE,
    ),
)


class CommandDispatcher:
    """Routes chat text to the first matching rule's handler."""

    def __init__(
        self,
        handlers: CommandHandlers,
        rules: tuple[CommandRule, ...] = COMMAND_RULES,
    ) -> None:
        self._handlers = handlers
        self._rules = rules

    @property
    def rules(self) -> tuple[CommandRule, ...]:
        return self._rules

    def select(self, text: str) -> tuple[Optional[CommandRule], Optional[re.Match[str]]]:
        """Return the first rule matching the text and its match."""
        for rule in self._rules:
            found = rule.match(text)
            if found is not None:
                return rule, found
        return None, None

    async def dispatch(
        self, text: str, history: tuple[Message, ...] = ()
    ) -> HandlerResult:
        """Run the handler of the first matching rule, or the fallback.

        Handlers report unresolved subjects in the returned narrative;
        only unexpected exceptions propagate from here.
        """
        rule, found = self.select(text)
        request = CommandRequest(text=text, match=found, history=history)

        if rule is None:
            logger.info("No command rule matched; using fallback handler")
            return await self._handlers.fallback(request)

        logger.info("Dispatching to rule '%s'", rule.name)
        return await rule.handler(self._handlers, request)
