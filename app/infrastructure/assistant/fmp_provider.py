"""
Adapter: Financial Modeling Prep market data.

Implements MarketDataProvider for quotes, movers and news.
Default provider: tried first for non-Indian symbols and for all
movers/news lookups.
"""

import logging
from typing import Any, Optional

from app.domain.assistant.entities import MoverItem, MoverKind, NewsItem, QuoteRecord
from app.domain.assistant.errors import ProviderUnavailableError
from app.infrastructure.assistant.http_provider import (
    DEFAULT_TIMEOUT_SECONDS,
    JsonHttpProvider,
    to_datetime,
    to_float,
    to_int,
)

logger = logging.getLogger(__name__)

FMP_BASE_URL = "https://financialmodelingprep.com/api/v3"


class FmpMarketDataProvider(JsonHttpProvider):
    """Financial Modeling Prep REST API (v3)."""

    name = "FMP"

    def __init__(
        self,
        api_key: str,
        base_url: str = FMP_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(api_key, base_url, timeout_seconds)

    async def quote(self, symbol: str) -> Optional[QuoteRecord]:
        payload = await self._get_json(f"/quote/{symbol}")
        rows = self._rows(payload, "/quote")
        if not rows:
            return None

        row = rows[0]
        with self._parsing("/quote"):
            price = to_float(row.get("price"))
            if not row.get("symbol") or price is None:
                return None

            return QuoteRecord(
                symbol=str(row["symbol"]),
                name=row.get("name") or str(row["symbol"]),
                price=price,
                change=to_float(row.get("change")),
                change_percent=to_float(row.get("changesPercentage")),
                day_low=to_float(row.get("dayLow")),
                day_high=to_float(row.get("dayHigh")),
                year_low=to_float(row.get("yearLow")),
                year_high=to_float(row.get("yearHigh")),
                market_cap=to_float(row.get("marketCap")),
                pe=to_float(row.get("pe")),
                eps=to_float(row.get("eps")),
                volume=to_int(row.get("volume")),
                sector=row.get("sector"),
                industry=row.get("industry"),
                source=self.name,
            )

    async def movers(self, kind: MoverKind, limit: int = 10) -> list[MoverItem]:
        path = f"/stock_market/{kind.value}"
        rows = self._rows(await self._get_json(path), path)
        with self._parsing(path):
            return [
                MoverItem(
                    symbol=row["symbol"],
                    name=row.get("name") or row["symbol"],
                    price=to_float(row.get("price")),
                    change=to_float(row.get("change")),
                    change_percent=to_float(row.get("changesPercentage")),
                )
                for row in rows[:limit]
                if row.get("symbol")
            ]

    async def news(self, symbol: Optional[str] = None, limit: int = 5) -> list[NewsItem]:
        params: dict[str, Any] = {"limit": limit}
        if symbol:
            params["tickers"] = symbol
        rows = self._rows(await self._get_json("/stock_news", params), "/stock_news")
        with self._parsing("/stock_news"):
            return [
                NewsItem(
                    title=row["title"],
                    url=row.get("url") or "",
                    source=row.get("site") or self.name,
                    published_at=to_datetime(row.get("publishedDate")),
                    summary=row.get("text") or "",
                    symbol=row.get("symbol"),
                )
                for row in rows[:limit]
                if row.get("title")
            ]

    def _rows(self, payload: Any, path: str) -> list[dict[str, Any]]:
        # FMP reports bad keys and plan limits as a dict with "Error Message".
        if isinstance(payload, dict):
            reason = payload.get("Error Message") or payload.get("error") or "unexpected object"
            raise ProviderUnavailableError(self.name, f"{reason} on {path}")
        if not isinstance(payload, list):
            raise ProviderUnavailableError(self.name, f"malformed payload on {path}")
        return [row for row in payload if isinstance(row, dict)]
