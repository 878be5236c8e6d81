"""
Adapter: Twelve Data market data.

Implements MarketDataProvider for quotes and movers.
India-first provider: tried first for symbols on the Indian allow-list.
Twelve Data has no news feed, so news() always returns an empty list.
"""

import logging
from typing import Any, Optional

from app.domain.assistant.entities import MoverItem, MoverKind, NewsItem, QuoteRecord
from app.domain.assistant.errors import ProviderUnavailableError
from app.infrastructure.assistant.http_provider import (
    DEFAULT_TIMEOUT_SECONDS,
    JsonHttpProvider,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

TWELVE_DATA_BASE_URL = "https://api.twelvedata.com"

# Error codes that mean "this symbol has no data" rather than an outage.
_NO_DATA_CODES = {400, 404}


class TwelveDataMarketDataProvider(JsonHttpProvider):
    """Twelve Data REST API."""

    name = "TwelveData"

    def __init__(
        self,
        api_key: str,
        base_url: str = TWELVE_DATA_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, base_url, timeout_seconds)

    async def quote(self, symbol: str) -> Optional[QuoteRecord]:
        payload = await self._get_json("/quote", {"symbol": symbol})
        if not self._is_ok(payload, "/quote"):
            return None

        with self._parsing("/quote"):
            price = to_float(payload.get("close"))
            if not payload.get("symbol") or price is None:
                return None

            year_range = payload.get("fifty_two_week")
            if not isinstance(year_range, dict):
                year_range = {}
            return QuoteRecord(
                symbol=str(payload["symbol"]),
                name=payload.get("name") or str(payload["symbol"]),
                price=price,
                change=to_float(payload.get("change")),
                change_percent=to_float(payload.get("percent_change")),
                day_low=to_float(payload.get("low")),
                day_high=to_float(payload.get("high")),
                year_low=to_float(year_range.get("low")),
                year_high=to_float(year_range.get("high")),
                volume=to_int(payload.get("volume")),
                source=self.name,
            )

    async def movers(self, kind: MoverKind, limit: int = 10) -> list[MoverItem]:
        path = "/market_movers/stocks"
        payload = await self._get_json(path, {"direction": kind.value, "outputsize": limit})
        if not self._is_ok(payload, path):
            return []
        values = payload.get("values") or []
        if not isinstance(values, list):
            raise ProviderUnavailableError(self.name, f"malformed payload on {path}")
        with self._parsing(path):
            return [
                MoverItem(
                    symbol=row["symbol"],
                    name=row.get("name") or row["symbol"],
                    price=to_float(row.get("last")),
                    change=to_float(row.get("change")),
                    change_percent=to_float(row.get("percent_change")),
                )
                for row in values[:limit]
                if isinstance(row, dict) and row.get("symbol")
            ]

    async def news(self, symbol: Optional[str] = None, limit: int = 5) -> list[NewsItem]:
        return []

    def _is_ok(self, payload: Any, path: str) -> bool:
        """Return False for "no data" replies, raise for outages."""
        if not isinstance(payload, dict):
            raise ProviderUnavailableError(self.name, f"malformed payload on {path}")
        if payload.get("status") != "error" and "code" not in payload:
            return True

        code = payload.get("code")
        message = payload.get("message", "")
        if isinstance(code, int) and code in _NO_DATA_CODES:
            logger.debug("%s has no data on %s: %s", self.name, path, message)
            return False
        raise ProviderUnavailableError(self.name, f"error {code} on {path}: {message}")
