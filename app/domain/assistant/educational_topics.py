"""
Static glossary of trading concepts served by the educational command.

Each topic carries a short explanation, an optional formula, key
points, a worked example and aliases users commonly type.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EducationalTopic:
    """One glossary entry."""

    key: str
    title: str
    explanation: str
    key_points: tuple[str, ...]
    example: str
    aliases: tuple[str, ...]
    formula: Optional[str] = None
    related_terms: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "title": self.title,
            "explanation": self.explanation,
            "formula": self.formula,
            "keyPoints": list(self.key_points),
            "example": self.example,
            "relatedTerms": list(self.related_terms),
        }


EDUCATIONAL_TOPICS: tuple[EducationalTopic, ...] = (
    EducationalTopic(
        key="pe_ratio",
        title="Price-to-Earnings (P/E) Ratio",
        explanation=(
            "The P/E ratio compares a company's share price with its "
            "earnings per share. It shows how much investors pay for each "
            "unit of profit."
        ),
        formula="P/E Ratio = Market Price per Share / Earnings per Share",
        key_points=(
            "A high P/E can mean the stock is expensive or that investors expect growth",
            "A low P/E can mean the stock is cheap or that the business is struggling",
            "Compare P/E only within the same industry",
        ),
        example="A stock priced at 100 with EPS of 5 has a P/E of 20.",
        aliases=("pe ratio", "p/e ratio", "p/e", "price to earnings", "price-to-earnings"),
        related_terms=("EPS", "Market Cap", "Valuation"),
    ),
    EducationalTopic(
        key="market_cap",
        title="Market Capitalization",
        explanation=(
            "Market cap is the total market value of a company's "
            "outstanding shares."
        ),
        formula="Market Cap = Share Price x Total Outstanding Shares",
        key_points=(
            "Large caps are established, usually less volatile companies",
            "Mid caps balance growth potential and stability",
            "Small caps can grow fast but carry more risk",
        ),
        example="1 crore shares at 500 each gives a market cap of 500 crore.",
        aliases=("market cap", "market capitalization", "market capitalisation", "mcap"),
        related_terms=("Large Cap", "Mid Cap", "Small Cap"),
    ),
    EducationalTopic(
        key="eps",
        title="Earnings Per Share (EPS)",
        explanation=(
            "EPS is the portion of a company's profit allocated to each "
            "outstanding share."
        ),
        formula="EPS = (Net Income - Preferred Dividends) / Outstanding Shares",
        key_points=(
            "Rising EPS over time signals growing profitability",
            "EPS feeds directly into the P/E ratio",
            "Diluted EPS accounts for convertible securities",
        ),
        example="Net income of 100 crore over 10 crore shares gives EPS of 10.",
        aliases=("eps", "earnings per share"),
        related_terms=("P/E Ratio", "Net Income"),
    ),
    EducationalTopic(
        key="dividend",
        title="Dividend",
        explanation=(
            "A dividend is a share of profits a company pays out to its "
            "shareholders, usually in cash."
        ),
        formula="Dividend Yield = Annual Dividend per Share / Share Price x 100",
        key_points=(
            "Mature, profitable companies pay dividends more often",
            "Dividends are not guaranteed and can be cut",
            "You must hold the share before the ex-dividend date to receive it",
        ),
        example="A 20 dividend on a 1000 share is a 2% yield.",
        aliases=("dividend", "dividends", "dividend yield"),
        related_terms=("Yield", "Ex-Dividend Date"),
    ),
    EducationalTopic(
        key="stock_market",
        title="The Stock Market",
        explanation=(
            "The stock market is where shares of listed companies are "
            "bought and sold through exchanges such as the NSE and BSE."
        ),
        key_points=(
            "Prices move with supply and demand for each share",
            "Indices such as NIFTY 50 and SENSEX track the overall market",
            "Investing carries risk, so diversify and invest for the long term",
        ),
        example="Buying one share of TCS on the NSE makes you a part-owner of TCS.",
        aliases=("stock market", "share market", "stock exchange"),
        related_terms=("NIFTY 50", "SENSEX", "Index"),
    ),
)


def find_topic(text: str) -> Optional[EducationalTopic]:
    """Return the topic whose longest alias appears in the text."""
    if not text:
        return None
    lowered = text.lower()
    best: Optional[tuple[int, EducationalTopic]] = None
    for topic in EDUCATIONAL_TOPICS:
        for alias in topic.aliases:
            if alias in lowered and (best is None or len(alias) > best[0]):
                best = (len(alias), topic)
    return best[1] if best else None
