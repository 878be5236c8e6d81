"""
Command handlers for the chat rule table.

Each handler receives a CommandRequest and returns a HandlerResult.
A handler that cannot resolve its subject (unknown symbol, every
provider exhausted) returns an explanatory reply with no data; that is
a successful outcome, not an error. Only unexpected exceptions escape.
"""

import logging
from typing import Optional

from app.application.assistant.canned_replies import canned_reply
from app.application.assistant.dtos import CommandRequest
from app.application.assistant.suggestions import suggestions_for
from app.domain.assistant import response_composer as composer
from app.domain.assistant.educational_topics import EDUCATIONAL_TOPICS, find_topic
from app.domain.assistant.entities import HandlerResult, MoverKind, QuoteRecord
from app.domain.assistant.errors import TextGenerationError
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.ports import TextGenerationPort
from app.domain.assistant.symbol_resolver import SymbolResolver

logger = logging.getLogger(__name__)

MARKET_INDICES: tuple[tuple[str, str], ...] = (
    ("NIFTY 50", "NSE benchmark tracking 50 of India's largest listed companies"),
    ("SENSEX", "BSE benchmark of 30 large, actively traded companies"),
    ("NIFTY BANK", "Tracks the most liquid and large Indian banking stocks"),
    ("NIFTY IT", "Tracks the performance of Indian IT services companies"),
    ("S&P 500", "US benchmark of 500 leading large-cap companies"),
    ("NASDAQ-100", "US index of 100 large non-financial companies on Nasdaq"),
)

PORTFOLIO_REPLY = (
    "💼 **Your portfolio**\n\n"
    "Your holdings, average buy prices and profit/loss live on the "
    "Portfolio page. Open it from the menu or say \"go to portfolio\"."
)

GREETING_REPLY = (
    "👋 Hello! I'm your trading assistant. Ask me for a stock quote, "
    "today's top gainers or losers, the latest news, or to compare two stocks."
)

HELP_REPLY = (
    "🤖 **Here's what I can do**\n\n"
    "• \"Price of TCS\": live stock quote\n"
    "• \"Top gainers\" / \"Top losers\": today's market movers\n"
    "• \"News about INFY\" or \"Latest market news\"\n"
    "• \"Compare TCS and INFY\": side-by-side comparison\n"
    "• \"What is P/E ratio?\": trading concepts explained\n"
    "• \"Nifty 50\": key market indices"
)

GENERATION_INSTRUCTION = (
    "You are a friendly stock market assistant on a virtual trading "
    "platform. Answer the user's question about investing, stocks or "
    "trading concisely and practically. Do not give personalised "
    "financial advice.\n\nUser: {message}"
)


class CommandHandlers:
    """Handler implementations bound to their collaborators.

    The rule table refers to these methods; the dispatcher calls them
    with this instance and a CommandRequest.
    """

    def __init__(
        self,
        resolver: SymbolResolver,
        gateway: MarketDataGateway,
        generator: Optional[TextGenerationPort] = None,
    ) -> None:
        """Initialize the handlers.

        Args:
            resolver: Maps text to ticker symbols.
            gateway: Resolves quotes, movers and news.
            generator: Optional AI text generation used by the fallback.
        """
        self._resolver = resolver
        self._gateway = gateway
        self._generator = generator

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------

    async def stock_quote(self, request: CommandRequest) -> HandlerResult:
        """Look up a single stock."""
        subject = request.group("subject")
        symbol = self._resolver.resolve(request.text, captured=subject)
        if symbol is None:
            return self._symbol_not_found(subject or request.text)
        return await self._quote_result(symbol)

    async def top_gainers(self, request: CommandRequest) -> HandlerResult:
        return await self._movers_result(MoverKind.GAINERS)

    async def top_losers(self, request: CommandRequest) -> HandlerResult:
        return await self._movers_result(MoverKind.LOSERS)

    async def news(self, request: CommandRequest) -> HandlerResult:
        """Headlines for the market, or for one symbol when one is named."""
        subject = request.group("subject")
        symbol = self._resolver.resolve(subject, captured=subject) if subject else None
        if symbol is None and subject is None:
            symbol = self._resolver.resolve(request.text)

        articles = await self._gateway.get_news(symbol)
        if not articles:
            scope = f" for {symbol}" if symbol else ""
            return HandlerResult(
                narrative_context=(
                    f"I couldn't fetch the latest news{scope} right now. "
                    "Please try again later."
                ),
                intent="news",
                suggestions=suggestions_for("news"),
            )
        return HandlerResult(
            narrative_context=composer.format_news(articles, symbol),
            additional_data={
                "type": "news",
                "symbol": symbol,
                "articles": [article.to_dict() for article in articles],
            },
            intent="news",
            suggestions=suggestions_for("news"),
        )

    async def stock_comparison(self, request: CommandRequest) -> HandlerResult:
        """Compare two stocks side by side."""
        symbols = self._comparison_symbols(request)
        if len(symbols) < 2:
            return HandlerResult(
                narrative_context=(
                    "Please name two stocks to compare, for example "
                    "\"Compare TCS and INFY\"."
                ),
                intent="stock_comparison",
                suggestions=suggestions_for("stock_comparison"),
            )

        first, second = await self._gateway.get_quotes(symbols[:2])
        missing = [s for s, record in zip(symbols, (first, second)) if record is None]
        if missing:
            return HandlerResult(
                narrative_context=(
                    f"I couldn't find market data for {' and '.join(missing)}, "
                    "so I can't compare them right now."
                ),
                intent="stock_comparison",
                suggestions=suggestions_for("stock_comparison"),
            )

        return HandlerResult(
            narrative_context=composer.format_comparison(first, second),
            additional_data={
                "type": "stock_comparison",
                "stocks": [first.to_dict(), second.to_dict()],
                "analysis": composer.comparison_analysis(first, second),
            },
            intent="stock_comparison",
            suggestions=suggestions_for("stock_comparison"),
        )

    # ------------------------------------------------------------------
    # Static content
    # ------------------------------------------------------------------

    async def market_indices(self, request: CommandRequest) -> HandlerResult:
        return HandlerResult(
            narrative_context=composer.format_market_indices(MARKET_INDICES),
            additional_data={
                "type": "market_indices",
                "indices": [
                    {"name": name, "description": description}
                    for name, description in MARKET_INDICES
                ],
            },
            intent="market_indices",
            suggestions=suggestions_for("market_indices"),
        )

    async def educational(self, request: CommandRequest) -> HandlerResult:
        """Explain a glossary topic, quote a named stock, or list the topics on offer."""
        topic = find_topic(request.text)
        if topic is None:
            symbol = self._resolver.resolve(request.text)
            if symbol is not None:
                return await self._quote_result(symbol)
            titles = ", ".join(t.title for t in EDUCATIONAL_TOPICS)
            return HandlerResult(
                narrative_context=(
                    "🎓 I can explain these concepts: "
                    f"{titles}. Which one would you like?"
                ),
                intent="educational",
                suggestions=suggestions_for("educational"),
            )
        return HandlerResult(
            narrative_context=composer.format_educational(topic),
            additional_data={"type": "educational", "topic": topic.to_dict()},
            intent="educational",
            suggestions=suggestions_for("educational"),
        )

    async def portfolio(self, request: CommandRequest) -> HandlerResult:
        return HandlerResult(
            narrative_context=PORTFOLIO_REPLY,
            additional_data={"type": "navigation", "route": "/portfolio"},
            intent="portfolio",
            suggestions=suggestions_for("portfolio"),
        )

    async def greeting(self, request: CommandRequest) -> HandlerResult:
        return HandlerResult(
            narrative_context=GREETING_REPLY,
            intent="greeting",
            suggestions=suggestions_for("greeting"),
        )

    async def help(self, request: CommandRequest) -> HandlerResult:
        return HandlerResult(
            narrative_context=HELP_REPLY,
            intent="help",
            suggestions=suggestions_for("help"),
        )

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    async def fallback(self, request: CommandRequest) -> HandlerResult:
        """Handle text no rule matched.

        Tries an opportunistic quote, then AI generation, then a canned
        topic-aware reply.
        """
        symbol = self._resolver.resolve(request.text)
        if symbol is not None:
            record = await self._gateway.get_quote(symbol)
            if record is not None:
                return self._quote_found(record)

        if self._generator is not None and self._generator.is_enabled:
            prompt = GENERATION_INSTRUCTION.format(message=request.text)
            try:
                reply = await self._generator.generate(prompt, list(request.history))
            except TextGenerationError as exc:
                logger.warning("Falling back to canned reply: %s", exc.reason)
            else:
                if reply and reply.strip():
                    return HandlerResult(
                        narrative_context=reply.strip(),
                        intent="general",
                        suggestions=suggestions_for("general"),
                    )

        return HandlerResult(
            narrative_context=canned_reply(request.text),
            intent="general",
            suggestions=suggestions_for("general"),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _quote_result(self, symbol: str) -> HandlerResult:
        record = await self._gateway.get_quote(symbol)
        if record is None:
            return HandlerResult(
                narrative_context=(
                    f"I couldn't find market data for {symbol} right now. "
                    "Please check the symbol or try again later."
                ),
                intent="stock_quote",
                suggestions=suggestions_for("stock_quote"),
            )
        return self._quote_found(record)

    @staticmethod
    def _quote_found(record: QuoteRecord) -> HandlerResult:
        return HandlerResult(
            narrative_context=composer.format_quote(record),
            stock_data=record,
            additional_data={"type": "stock_quote", "symbol": record.symbol},
            intent="stock_quote",
            suggestions=suggestions_for("stock_quote"),
        )

    def _symbol_not_found(self, subject: str) -> HandlerResult:
        hints = self._resolver.suggest(subject)
        narrative = "I couldn't work out which stock you mean."
        if hints:
            narrative += f" Did you mean {', '.join(hints)}?"
        else:
            narrative += " Try a ticker such as TCS or a company name such as Reliance."
        return HandlerResult(
            narrative_context=narrative,
            intent="stock_quote",
            suggestions=tuple(f"Price of {hint}" for hint in hints)
            or suggestions_for("stock_quote"),
        )

    async def _movers_result(self, kind: MoverKind) -> HandlerResult:
        intent = f"top_{kind.value}"
        movers = await self._gateway.get_movers(kind)
        if not movers:
            return HandlerResult(
                narrative_context=(
                    f"I couldn't fetch the top {kind.value} right now. "
                    "Please try again later."
                ),
                intent=intent,
                suggestions=suggestions_for(intent),
            )
        return HandlerResult(
            narrative_context=composer.format_movers(movers, kind),
            additional_data={
                "type": intent,
                "kind": kind.value,
                "movers": [item.to_dict() for item in movers],
            },
            intent=intent,
            suggestions=suggestions_for(intent),
        )

    def _comparison_symbols(self, request: CommandRequest) -> list[str]:
        symbols: list[str] = []
        for name in ("first", "second"):
            subject = request.group(name)
            if subject is None:
                continue
            symbol = self._resolver.resolve(subject, captured=subject)
            if symbol is not None and symbol not in symbols:
                symbols.append(symbol)
        if len(symbols) < 2:
            for symbol in self._resolver.resolve_all(request.text):
                if symbol not in symbols:
                    symbols.append(symbol)
        return symbols[:2]
