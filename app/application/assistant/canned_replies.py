"""
Topic-aware canned replies used when AI text generation is unavailable.

Keyword checks run in order; the first topic whose keyword appears in
the message wins, the generic reply otherwise.
"""

INVESTING_REPLY = (
    "💰 **Getting started with investing**\n\n"
    "• Open a demat account with a registered broker\n"
    "• Start with index funds or blue-chip stocks\n"
    "• Invest only what you can afford to lose\n"
    "• Learn about SIPs (Systematic Investment Plans)\n\n"
    "This platform is a virtual trading simulator, so you can practise "
    "without risking real money. What would you like to learn next?"
)

STOCK_REPLY = (
    "📈 **Stock information**\n\n"
    "I can look up live quotes. Try a ticker or company name, for example "
    "\"price of TCS\" or \"tell me about Reliance\"."
)

MARKET_REPLY = (
    "📊 **Market overview**\n\n"
    "Ask for \"top gainers\", \"top losers\" or \"latest market news\" to see "
    "what is moving today, or \"Nifty 50\" for index information."
)

NEWS_REPLY = (
    "📰 **Market news**\n\n"
    "Ask for \"latest market news\" or \"news about INFY\" to get the "
    "latest headlines."
)

EDUCATIONAL_REPLY = (
    "🎓 **Stock market education**\n\n"
    "I can explain P/E ratio, market cap, EPS, dividends and how the stock "
    "market works. Which concept would you like to explore?"
)

GENERIC_REPLY = (
    "💡 I'm your stock market assistant. I can help with:\n\n"
    "• Stock quotes and company data\n"
    "• Top gainers and losers\n"
    "• Market news\n"
    "• Comparing two stocks\n"
    "• Explaining trading concepts\n\n"
    "Could you be more specific about what you'd like to know?"
)

_KEYWORD_REPLIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("invest", "investment", "sip"), INVESTING_REPLY),
    (("price", "quote", "stock", "share"), STOCK_REPLY),
    (("market", "nifty", "sensex"), MARKET_REPLY),
    (("news", "update", "headline"), NEWS_REPLY),
    (("what is", "explain", "learn", "meaning"), EDUCATIONAL_REPLY),
)


def canned_reply(message: str) -> str:
    """Return the canned reply for the first topic the message mentions."""
    lowered = (message or "").lower()
    for keywords, reply in _KEYWORD_REPLIES:
        if any(keyword in lowered for keyword in keywords):
            return reply
    return GENERIC_REPLY
