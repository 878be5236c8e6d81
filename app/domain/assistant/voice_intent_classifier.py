"""
Domain service: voice transcript intent classification.

Categorizes transcribed speech into the UI-facing intent taxonomy
(navigate, action, stock_data, search, compare, news, help, answer).
This taxonomy is deliberately separate from the chat command rules:
it serves UI navigation, not reply generation.

Categories are checked in a fixed order and the first match wins:

    1. navigation    any route trigger phrase, anywhere in the transcript
    2. action        buy / sell / watchlist / alert phrases
    3. stock data    resolved record, stock keywords or an extractable symbol
    4. search, compare, news, help
    5. answer        default

Confidence: 0.5 + matched words / transcript words, capped at 0.9.
A caller-supplied resolved record is fixed at 0.9, the default 0.5.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from app.domain.assistant.entities import Intent, IntentType, QuoteRecord
from app.domain.assistant.symbol_resolver import SymbolResolver

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.9
RECORD_CONFIDENCE = 0.9
WEAK_COMPARE_CONFIDENCE = 0.5

NAVIGATION_PHRASES: dict[str, tuple[str, ...]] = {
    "dashboard": (
        "dashboard", "home", "main page", "go home", "take me home",
        "show dashboard", "open dashboard", "main screen",
    ),
    "portfolio": (
        "portfolio", "my portfolio", "show portfolio", "open portfolio",
        "my stocks", "my investments", "holdings",
    ),
    "watchlist": (
        "watchlist", "watch list", "my watchlist", "show watchlist",
        "open watchlist", "favorites", "saved stocks",
    ),
    "market": (
        "market", "stocks", "stock market", "market data", "show market",
        "open market", "trading", "stock prices",
    ),
    "news": (
        "news", "market news", "financial news", "show news", "latest news",
        "stock news", "business news",
    ),
    "orders": (
        "orders", "my orders", "order history", "show orders",
        "trading history", "transactions",
    ),
    "settings": (
        "settings", "preferences", "configuration", "options",
        "account settings", "profile",
    ),
}

ACTION_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (
        "remove_from_watchlist",
        (
            r"unwatch",
            r"stop tracking",
        ),
    ),
    (
        "buy",
        (
            r"place (?:a )?buy order",
            r"order to buy",
            r"buy",
            r"purchase",
            r"invest in",
            r"get shares of",
            r"acquire",
        ),
    ),
    (
        "sell",
        (
            r"place (?:a )?sell order",
            r"order to sell",
            r"sell",
            r"dispose",
            r"liquidate",
            r"exit position",
            r"close position",
        ),
    ),
    (
        "add_to_watchlist",
        (
            r"save stock",
            r"watch",
            r"track",
            r"follow",
            r"monitor",
        ),
    ),
    (
        "set_alert",
        (
            r"set (?:an? |price )?alert",
            r"create (?:an? )?alert",
            r"price alert",
            r"alert me when",
            r"alert when",
            r"notify me",
            r"set (?:a )?notification",
        ),
    ),
)

STOCK_KEYWORDS = (
    "price", "quote", "stock", "share", "ticker", "symbol", "market cap",
    "pe ratio", "earnings", "dividend", "volume", "high", "low", "open",
    "close", "change", "percentage",
)

SEARCH_PHRASES = ("look for", "show me", "get me", "search", "find")
COMPARE_PHRASES = ("difference between", "compare", "versus", "against", "vs")
NEWS_PHRASES = ("headlines", "breaking", "updates", "latest", "news")
HELP_PHRASES = ("how to", "what is", "tutorial", "explain", "guide", "help")


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![a-z0-9]){phrase}(?![a-z0-9])")


def _compile_phrases(phrases: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(_phrase_pattern(re.escape(p)) for p in phrases)


def _compile_navigation() -> list[tuple[str, re.Pattern[str]]]:
    """Word-bounded trigger patterns, longest phrase first within each route."""
    return [
        (route, _phrase_pattern(re.escape(phrase)))
        for route, phrases in NAVIGATION_PHRASES.items()
        for phrase in sorted(phrases, key=len, reverse=True)
    ]


_NAVIGATION = _compile_navigation()
_ACTIONS = tuple(
    (action, tuple(_phrase_pattern(p) for p in patterns))
    for action, patterns in ACTION_PATTERNS
)
_STOCK_KEYWORDS = _compile_phrases(STOCK_KEYWORDS)
_SEARCH = _compile_phrases(SEARCH_PHRASES)
_COMPARE = _compile_phrases(COMPARE_PHRASES)
_NEWS = _compile_phrases(NEWS_PHRASES)
_HELP = _compile_phrases(HELP_PHRASES)


def calculate_confidence(transcript: str, matched: str) -> float:
    """Return 0.5 boosted by the share of words the matched phrase covers."""
    total = len(transcript.split())
    if total == 0:
        return BASE_CONFIDENCE
    ratio = len(matched.split()) / total
    return round(min(MAX_CONFIDENCE, BASE_CONFIDENCE + ratio), 2)


def _first_match(
    text: str, patterns: tuple[re.Pattern[str], ...]
) -> Optional[re.Match[str]]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


class VoiceIntentClassifier:
    """Classifies a voice transcript into a UI intent.

    Stateless. Independent of the chat command rule table.
    """

    def __init__(self, resolver: Optional[SymbolResolver] = None) -> None:
        self._resolver = resolver or SymbolResolver()

    def classify(
        self, transcript: Optional[str], record: Optional[QuoteRecord] = None
    ) -> Intent:
        """Classify a transcript.

        Args:
            transcript: Raw speech-to-text output.
            record: Quote already resolved for this utterance, if any.

        Returns:
            The first matching Intent, or an ``answer`` intent.
        """
        if transcript is None or not transcript.strip():
            return Intent(
                type=IntentType.ERROR, data="Empty transcript", confidence=0.0
            )

        raw = " ".join(transcript.split())
        text = raw.lower()

        for classify_step in (self._navigation, self._action):
            intent = classify_step(raw, text)
            if intent is not None:
                return intent

        intent = self._stock_data(raw, text, record)
        if intent is not None:
            return intent

        for classify_step in (self._search, self._compare, self._news, self._help):
            intent = classify_step(raw, text)
            if intent is not None:
                return intent

        return Intent(type=IntentType.ANSWER, data=raw, confidence=BASE_CONFIDENCE)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _navigation(self, raw: str, text: str) -> Optional[Intent]:
        for route, pattern in _NAVIGATION:
            match = pattern.search(text)
            if match:
                return Intent(
                    type=IntentType.NAVIGATE,
                    data=f"/{route}",
                    route=route,
                    confidence=calculate_confidence(text, match.group(0)),
                )
        return None

    def _action(self, raw: str, text: str) -> Optional[Intent]:
        for action, patterns in _ACTIONS:
            match = _first_match(text, patterns)
            if match:
                return Intent(
                    type=IntentType.ACTION,
                    data=action,
                    action=action,
                    stock_symbol=self._resolver.resolve(raw),
                    confidence=calculate_confidence(text, match.group(0)),
                )
        return None

    def _stock_data(
        self, raw: str, text: str, record: Optional[QuoteRecord]
    ) -> Optional[Intent]:
        if record is not None:
            return Intent(
                type=IntentType.STOCK_DATA,
                data=record.to_dict(),
                stock_symbol=record.symbol,
                confidence=RECORD_CONFIDENCE,
            )

        keyword = _first_match(text, _STOCK_KEYWORDS)
        symbols = self._resolver.resolve_all(raw)

        if keyword is None:
            # A bare symbol defers to an explicit search/compare/news/help phrase.
            if not symbols or self._has_content_trigger(text):
                return None

        symbol = symbols[0] if symbols else None
        matched = keyword.group(0) if keyword is not None else symbol
        return Intent(
            type=IntentType.STOCK_DATA,
            data=symbol or "general_stock_query",
            stock_symbol=symbol,
            confidence=calculate_confidence(text, matched),
        )

    def _search(self, raw: str, text: str) -> Optional[Intent]:
        match = _first_match(text, _SEARCH)
        if match is None:
            return None
        query = " ".join((raw[: match.start()] + raw[match.end():]).split())
        return Intent(
            type=IntentType.SEARCH,
            data=query,
            query=query,
            confidence=calculate_confidence(text, match.group(0)),
        )

    def _compare(self, raw: str, text: str) -> Optional[Intent]:
        match = _first_match(text, _COMPARE)
        if match is None:
            return None
        symbols = tuple(self._resolver.resolve_all(raw))
        confidence = (
            calculate_confidence(text, match.group(0))
            if len(symbols) >= 2
            else WEAK_COMPARE_CONFIDENCE
        )
        return Intent(
            type=IntentType.COMPARE,
            data=list(symbols),
            symbols=symbols,
            confidence=confidence,
        )

    def _news(self, raw: str, text: str) -> Optional[Intent]:
        match = _first_match(text, _NEWS)
        if match is None:
            return None
        symbol = self._resolver.resolve(raw)
        return Intent(
            type=IntentType.NEWS,
            data=symbol or "general_news",
            stock_symbol=symbol,
            confidence=calculate_confidence(text, match.group(0)),
        )

    def _help(self, raw: str, text: str) -> Optional[Intent]:
        match = _first_match(text, _HELP)
        if match is None:
            return None
        topic = " ".join((raw[: match.start()] + raw[match.end():]).split())
        return Intent(
            type=IntentType.HELP,
            data=raw,
            query=topic or None,
            confidence=calculate_confidence(text, match.group(0)),
        )

    @staticmethod
    def _has_content_trigger(text: str) -> bool:
        return any(
            _first_match(text, patterns) is not None
            for patterns in (_SEARCH, _COMPARE, _NEWS, _HELP)
        )
