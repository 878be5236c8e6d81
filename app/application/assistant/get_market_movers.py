"""
Use case: Today's top gainers or losers.

Input: kind ("gainers" | "losers"), limit
Output: list[MoverItem], empty when no provider answered
Side effects: None (read-only query).
Failure cases: InvalidMoverKindError for any other kind.
"""

from app.domain.assistant.entities import MoverItem, MoverKind
from app.domain.assistant.errors import InvalidMoverKindError
from app.domain.assistant.market_data_gateway import MarketDataGateway


class GetMarketMoversUseCase:
    """Read-only movers query."""

    def __init__(self, gateway: MarketDataGateway) -> None:
        self._gateway = gateway

    async def execute(self, kind: str, limit: int = 10) -> list[MoverItem]:
        try:
            mover_kind = MoverKind((kind or "").lower())
        except ValueError:
            raise InvalidMoverKindError(kind) from None
        return await self._gateway.get_movers(mover_kind, limit=limit)
