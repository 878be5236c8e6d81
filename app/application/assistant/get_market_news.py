"""
Use case: Latest market or symbol news.

Input: optional symbol, limit
Output: list[NewsItem], empty when no provider answered
Side effects: None (read-only query).
Failure cases: InvalidInputError if the symbol is malformed.
"""

from typing import Optional

from app.domain.assistant.entities import NewsItem
from app.domain.assistant.errors import InvalidInputError
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.symbol_resolver import is_valid_symbol


class GetMarketNewsUseCase:
    """Read-only news query."""

    def __init__(self, gateway: MarketDataGateway) -> None:
        self._gateway = gateway

    async def execute(self, symbol: Optional[str] = None, limit: int = 5) -> list[NewsItem]:
        normalized = symbol.strip().upper() if symbol else None
        if normalized is not None and not is_valid_symbol(normalized):
            raise InvalidInputError(f"malformed symbol '{symbol}'")
        return await self._gateway.get_news(normalized, limit=limit)
