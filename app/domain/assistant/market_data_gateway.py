"""
Domain service: market data resolution with provider fallback.

Resolves a symbol to a QuoteRecord by walking an ordered chain of
(provider, symbol variant) candidates:

    provider order   India-first provider leads for known Indian tickers,
                     the default provider leads otherwise; the other one
                     is always the fallback.
    variant order    requested, BASE.NS, BASE.BO, BASE (deduplicated).

Every candidate is attempted once. Adapter failures are swallowed and
the loop advances, so the chain completes in bounded time
(providers x variants x timeout). None means every candidate failed.
"""

import asyncio
import logging
from typing import Optional

from app.domain.assistant.entities import MoverItem, MoverKind, NewsItem, QuoteRecord
from app.domain.assistant.errors import ProviderUnavailableError
from app.domain.assistant.ports import MarketDataProvider
from app.domain.assistant.quote_cache import QuoteCache
from app.domain.assistant.symbol_resolver import strip_exchange_suffix

logger = logging.getLogger(__name__)

# Heuristic pre-filter only: deciding provider order, never whether
# a symbol exists.
INDIAN_SYMBOLS: frozenset[str] = frozenset(
    {
        "TCS", "RELIANCE", "INFY", "HDFCBANK", "ICICIBANK", "SBIN", "ITC",
        "LT", "BHARTIARTL", "ASIANPAINT", "WIPRO", "MARUTI", "BAJFINANCE",
        "KOTAKBANK", "HINDUNILVR", "AXISBANK", "ULTRACEMCO", "NESTLEIND",
        "POWERGRID", "NTPC", "TECHM", "SUNPHARMA", "TITAN", "DRREDDY",
        "ZOMATO", "SWIGGY", "PAYTM", "NYKAA", "COALINDIA", "ONGC", "IOC",
        "HCLTECH", "TATAMOTORS", "TATASTEEL", "M&M", "ADANIPORTS", "CIPLA",
        "LUPIN", "BIOCON", "YESBANK",
    }
)


def symbol_variants(symbol: str) -> list[str]:
    """Return the ordered, deduplicated symbol variants to try."""
    requested = symbol.strip().upper()
    base = strip_exchange_suffix(requested)
    variants: list[str] = []
    for candidate in (requested, f"{base}.NS", f"{base}.BO", base):
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def is_indian_symbol(symbol: str, allow_list: frozenset[str] = INDIAN_SYMBOLS) -> bool:
    return strip_exchange_suffix(symbol) in allow_list


def _is_well_formed(record: Optional[QuoteRecord]) -> bool:
    return (
        record is not None
        and bool(record.symbol)
        and record.price is not None
        and record.price > 0
    )


class MarketDataGateway:
    """Resolves quotes, movers and news through ordered provider fallback.

    Read-only. Sequential within one lookup; independent lookups may run
    concurrently through get_quotes().
    """

    def __init__(
        self,
        default_provider: MarketDataProvider,
        india_provider: MarketDataProvider,
        cache: Optional[QuoteCache] = None,
        indian_symbols: frozenset[str] = INDIAN_SYMBOLS,
    ) -> None:
        """Initialize the gateway.

        Args:
            default_provider: Tried first for non-Indian symbols, and first
                for movers and news.
            india_provider: Tried first for symbols on the Indian allow-list.
            cache: Optional short-TTL quote cache.
            indian_symbols: Allow-list driving the provider order.
        """
        self._default = default_provider
        self._india = india_provider
        self._cache = cache
        self._indian_symbols = indian_symbols

    def provider_order(self, symbol: str) -> list[MarketDataProvider]:
        """Return providers in the order they are tried for a quote."""
        if is_indian_symbol(symbol, self._indian_symbols):
            return [self._india, self._default]
        return [self._default, self._india]

    async def get_quote(self, symbol: str) -> Optional[QuoteRecord]:
        """Resolve one symbol, or return None after exhausting every candidate."""
        requested = (symbol or "").strip().upper()
        if not requested:
            return None

        if self._cache is not None:
            cached = self._cache.get(requested)
            if cached is not None:
                logger.debug("Quote cache hit for %s", requested)
                return cached

        variants = symbol_variants(requested)
        for provider in self.provider_order(requested):
            if not provider.is_configured:
                logger.debug("Skipping unconfigured provider %s", provider.name)
                continue
            for variant in variants:
                try:
                    record = await provider.quote(variant)
                except ProviderUnavailableError as exc:
                    logger.debug(
                        "Provider %s failed for %s: %s",
                        provider.name,
                        variant,
                        exc.reason,
                    )
                    continue

                if _is_well_formed(record):
                    logger.info(
                        "Resolved %s via %s (variant %s)",
                        requested,
                        provider.name,
                        variant,
                    )
                    if self._cache is not None:
                        self._cache.set(requested, record)
                    return record

        logger.info("All providers exhausted for %s", requested)
        return None

    async def get_quotes(self, symbols: list[str]) -> list[Optional[QuoteRecord]]:
        """Resolve independent symbols concurrently, preserving order."""
        return list(await asyncio.gather(*(self.get_quote(s) for s in symbols)))

    async def get_movers(self, kind: MoverKind, limit: int = 10) -> list[MoverItem]:
        """Return top gainers or losers, or an empty list when unavailable."""
        for provider in (self._default, self._india):
            if not provider.is_configured:
                continue
            try:
                movers = await provider.movers(kind, limit=limit)
            except ProviderUnavailableError as exc:
                logger.warning(
                    "Movers lookup failed on %s: %s", provider.name, exc.reason
                )
                continue
            if movers:
                return movers[:limit]
        logger.info("No provider returned %s", kind.value)
        return []

    async def get_news(
        self, symbol: Optional[str] = None, limit: int = 5
    ) -> list[NewsItem]:
        """Return headlines for a symbol or the whole market."""
        for provider in (self._default, self._india):
            if not provider.is_configured:
                continue
            try:
                items = await provider.news(symbol, limit=limit)
            except ProviderUnavailableError as exc:
                logger.warning(
                    "News lookup failed on %s: %s", provider.name, exc.reason
                )
                continue
            if items:
                return items[:limit]
        return []
