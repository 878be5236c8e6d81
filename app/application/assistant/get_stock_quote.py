"""
Use case: Direct quote lookup for one symbol.

Input: symbol string
Output: QuoteRecord
Side effects: None (read-only; may warm the quote cache).
Failure cases:
    - InvalidInputError if the symbol is malformed.
    - QuoteNotFoundError if every provider and variant came back empty.
"""

import logging

from app.domain.assistant.entities import QuoteRecord
from app.domain.assistant.errors import InvalidInputError, QuoteNotFoundError
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.symbol_resolver import is_valid_symbol

logger = logging.getLogger(__name__)


class GetStockQuoteUseCase:
    """Resolves one symbol through the gateway's fallback chain."""

    def __init__(self, gateway: MarketDataGateway) -> None:
        self._gateway = gateway

    async def execute(self, symbol: str) -> QuoteRecord:
        normalized = (symbol or "").strip().upper()
        if not is_valid_symbol(normalized):
            raise InvalidInputError(f"malformed symbol '{symbol}'")

        record = await self._gateway.get_quote(normalized)
        if record is None:
            raise QuoteNotFoundError(normalized)
        return record
