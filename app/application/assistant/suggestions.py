"""
Quick follow-up prompts shown under assistant replies.
"""

STARTER_SUGGESTIONS: tuple[str, ...] = (
    "Show me top gainers today",
    "What are the top losers?",
    "Get quote for RELIANCE",
    "Latest market news",
    "Compare TCS and INFY",
    "What is the stock market?",
    "Explain P/E ratio",
    "How is Nifty 50 performing?",
)

_BY_INTENT: dict[str, tuple[str, ...]] = {
    "stock_quote": ("Show top gainers", "Show top losers", "Market overview"),
    "top_gainers": ("Show top losers", "Latest market news", "Compare TCS and INFY"),
    "top_losers": ("Show top gainers", "Latest market news", "Market overview"),
    "news": ("IT sector news", "Banking updates", "Show top gainers"),
    "stock_comparison": ("Compare TCS and INFY", "Compare HDFC and ICICI", "Show top gainers"),
    "market_indices": ("Show top gainers", "Latest market news", "Explain market cap"),
    "educational": ("Explain P/E ratio", "What is market cap?", "What is EPS?"),
    "portfolio": ("Show top gainers", "Get quote for TCS", "Latest market news"),
}

DEFAULT_SUGGESTIONS: tuple[str, ...] = (
    "Show top gainers",
    "Get quote for RELIANCE",
    "Latest market news",
    "Explain P/E ratio",
)


def suggestions_for(intent: str) -> tuple[str, ...]:
    """Return follow-up prompts for the rule that produced a reply."""
    return _BY_INTENT.get(intent, DEFAULT_SUGGESTIONS)
