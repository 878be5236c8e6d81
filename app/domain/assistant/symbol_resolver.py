"""
Domain service: free text to ticker symbol.

Pure business logic that finds the stock a user is talking about,
using a rule capture, an uppercase token scan and a company-name
alias table, in that order. No IO, no frameworks.
"""

from __future__ import annotations

import difflib
import re
from typing import Optional


# ---------------------------------------------------------------------------
# Symbol → aliases dictionary
# ---------------------------------------------------------------------------
# Keys are the canonical symbols sent to market data providers.
# Values are lowercase company names and nicknames users type.

COMPANY_ALIASES: dict[str, list[str]] = {
    # Indian large caps
    "RELIANCE": ["reliance", "reliance industries", "ril"],
    "TCS": ["tcs", "tata consultancy", "tata consultancy services"],
    "INFY": ["infosys", "infy"],
    "HDFCBANK": ["hdfc bank", "hdfc"],
    "ICICIBANK": ["icici bank", "icici"],
    "SBIN": ["state bank of india", "state bank", "sbi"],
    "ITC": ["itc"],
    "LT": ["larsen and toubro", "larsen & toubro", "larsen", "l&t"],
    "BHARTIARTL": ["bharti airtel", "airtel"],
    "ASIANPAINT": ["asian paints"],
    "WIPRO": ["wipro"],
    "HCLTECH": ["hcl technologies", "hcl tech", "hcl"],
    "TECHM": ["tech mahindra"],
    "MARUTI": ["maruti suzuki", "maruti"],
    "TATAMOTORS": ["tata motors"],
    "TATASTEEL": ["tata steel"],
    "M&M": ["mahindra and mahindra", "mahindra & mahindra", "mahindra", "m&m"],
    "BAJFINANCE": ["bajaj finance", "bajaj"],
    "KOTAKBANK": ["kotak mahindra bank", "kotak bank", "kotak"],
    "AXISBANK": ["axis bank", "axis"],
    "YESBANK": ["yes bank"],
    "ADANIPORTS": ["adani ports", "adani"],
    "SUNPHARMA": ["sun pharma", "sun pharmaceutical"],
    "DRREDDY": ["dr reddy", "dr. reddy", "dr reddys", "dr. reddy's"],
    "CIPLA": ["cipla"],
    "LUPIN": ["lupin"],
    "BIOCON": ["biocon"],
    "TITAN": ["titan"],
    "NESTLEIND": ["nestle india", "nestle"],
    "HINDUNILVR": ["hindustan unilever", "hul"],
    "ULTRACEMCO": ["ultratech cement", "ultratech"],
    "COALINDIA": ["coal india"],
    "ONGC": ["ongc", "oil and natural gas"],
    "NTPC": ["ntpc"],
    "POWERGRID": ["power grid"],
    "IOC": ["indian oil"],
    "ZOMATO": ["zomato"],
    "SWIGGY": ["swiggy"],
    "PAYTM": ["paytm", "one97"],
    "NYKAA": ["nykaa"],
    # US large caps
    "AAPL": ["apple"],
    "MSFT": ["microsoft"],
    "GOOGL": ["google", "alphabet"],
    "AMZN": ["amazon"],
    "TSLA": ["tesla"],
    "META": ["meta platforms", "facebook"],
    "NFLX": ["netflix"],
    "NVDA": ["nvidia"],
}

# Words that look like tickers when typed in capitals but never are.
STOP_WORDS: frozenset[str] = frozenset(
    {
        "STOCK", "SHARE", "SHARES", "COMPANY", "DATA", "PRICE", "INFO",
        "ABOUT", "TELL", "SHOW", "GIVE", "WHAT", "THE", "IS", "ARE", "AND",
        "OR", "BUT", "FOR", "WITH", "TO", "FROM", "BY", "AT", "IN", "ON",
        "OF", "ME", "MY", "HOW", "QUOTE", "NEWS", "VS", "VERSUS", "COMPARE",
        "TODAY", "PLEASE", "CAN", "YOU",
    }
)

# Noise stripped from a rule's capture group before judging it.
CAPTURE_NOISE_WORDS: frozenset[str] = frozenset(
    {
        "STOCK", "STOCKS", "SHARE", "SHARES", "COMPANY", "DATA", "PRICE",
        "INFO", "INFORMATION", "ABOUT", "TELL", "SHOW", "GIVE", "THE",
        "OF", "ME", "QUOTE", "CURRENT", "TODAY",
    }
)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9.&-]{1,14}$")
EXCHANGE_SUFFIX_PATTERN = re.compile(r"\.(?:NS|BO|NSE)$")

# Uppercase tokens in the raw text, with an optional exchange suffix.
_TOKEN_PATTERN = re.compile(
    r"(?<![A-Za-z0-9&])([A-Z][A-Z0-9&]{1,14}(?:\.(?:NS|BO|NSE))?)(?![A-Za-z0-9&])"
)


def _compile_alias_table(
    aliases: dict[str, list[str]],
) -> list[tuple[str, str, re.Pattern[str]]]:
    # Longest alias first so that "tech mahindra" wins over "mahindra".
    entries = [
        (alias, symbol) for symbol, names in aliases.items() for alias in names
    ]
    entries.sort(key=lambda entry: len(entry[0]), reverse=True)
    return [
        (
            alias,
            symbol,
            re.compile(rf"(?<![a-z0-9]){re.escape(alias)}(?![a-z0-9])"),
        )
        for alias, symbol in entries
    ]


_ALIAS_PATTERNS = _compile_alias_table(COMPANY_ALIASES)


def is_valid_symbol(symbol: Optional[str]) -> bool:
    """Return True for 2-15 chars of uppercase letters, digits, '.', '&' or '-'."""
    if not symbol:
        return False
    return bool(SYMBOL_PATTERN.match(symbol))


def strip_exchange_suffix(symbol: str) -> str:
    """Remove a trailing .NS / .BO / .NSE exchange suffix."""
    return EXCHANGE_SUFFIX_PATTERN.sub("", symbol.upper())


class SymbolResolver:
    """Maps free text to a candidate ticker symbol.

    Stateless and deterministic for a given alias table.
    """

    def __init__(self, aliases: Optional[dict[str, list[str]]] = None) -> None:
        self._aliases = aliases if aliases is not None else COMPANY_ALIASES
        self._patterns = (
            _ALIAS_PATTERNS
            if aliases is None
            else _compile_alias_table(self._aliases)
        )
        self._alias_lookup = {
            alias: symbol for alias, symbol, _ in self._patterns
        }

    @property
    def known_symbols(self) -> list[str]:
        return list(self._aliases)

    def resolve(self, text: str, captured: Optional[str] = None) -> Optional[str]:
        """Return the ticker the text refers to, or None.

        Args:
            text: Raw user text.
            captured: Optional regex capture from the rule that matched.

        Returns:
            The first success of: plausible capture, uppercase token
            scan, alias lookup.
        """
        if captured:
            symbol = self._from_capture(captured)
            if symbol:
                return symbol

        if not text:
            return None

        token = next(self._uppercase_tokens(text), None)
        if token:
            return token

        lowered = text.lower()
        for _alias, symbol, pattern in self._patterns:
            if pattern.search(lowered):
                return symbol

        return None

    def resolve_all(self, text: str) -> list[str]:
        """Return every distinct symbol mentioned, in order of appearance.

        Alias matches take precedence over the uppercase tokens they
        overlap ("HDFC BANK" yields HDFCBANK, not HDFC and BANK).
        """
        if not text:
            return []

        lowered = text.lower()
        claimed: list[tuple[int, int]] = []
        found: list[tuple[int, str]] = []

        for _alias, symbol, pattern in self._patterns:
            for match in pattern.finditer(lowered):
                span = match.span()
                if any(span[0] < end and start < span[1] for start, end in claimed):
                    continue
                claimed.append(span)
                found.append((span[0], symbol))

        for match in _TOKEN_PATTERN.finditer(text):
            token = match.group(1)
            span = match.span(1)
            if token in STOP_WORDS:
                continue
            if any(span[0] < end and start < span[1] for start, end in claimed):
                continue
            found.append((span[0], token))

        found.sort(key=lambda item: item[0])
        ordered: list[str] = []
        for _position, symbol in found:
            if symbol not in ordered:
                ordered.append(symbol)
        return ordered

    def suggest(self, text: str, limit: int = 3) -> list[str]:
        """Return close symbol matches for a misspelt company or ticker."""
        if not text:
            return []
        candidate = text.strip().lower()
        by_alias = difflib.get_close_matches(
            candidate, list(self._alias_lookup), n=limit, cutoff=0.6
        )
        by_symbol = difflib.get_close_matches(
            candidate.upper(), self.known_symbols, n=limit, cutoff=0.6
        )
        suggestions: list[str] = []
        for symbol in [self._alias_lookup[a] for a in by_alias] + by_symbol:
            if symbol not in suggestions:
                suggestions.append(symbol)
        return suggestions[:limit]

    def _from_capture(self, captured: str) -> Optional[str]:
        words = [
            word
            for word in re.split(r"[\s?!,]+", captured.strip())
            if word and word.upper() not in CAPTURE_NOISE_WORDS
        ]
        if not words:
            return None

        phrase = " ".join(words).lower()
        if phrase in self._alias_lookup:
            return self._alias_lookup[phrase]

        if len(words) == 1:
            word = words[0].rstrip(".")
            if word.isupper() and word not in STOP_WORDS and is_valid_symbol(word):
                return word
        return None

    @staticmethod
    def _uppercase_tokens(text: str):
        for match in _TOKEN_PATTERN.finditer(text):
            token = match.group(1)
            if token not in STOP_WORDS:
                yield token
