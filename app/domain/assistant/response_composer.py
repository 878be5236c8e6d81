"""
Domain service: response formatting.

Turns resolved market data into markdown text blocks with a stable
section and field order. Pure formatting, no network or persistence.
"""

from typing import Iterable, Optional

from app.domain.assistant.educational_topics import EducationalTopic
from app.domain.assistant.entities import MoverItem, MoverKind, NewsItem, QuoteRecord

NOT_AVAILABLE = "N/A"
MAX_MOVERS = 10
MAX_NEWS = 5
NEWS_TITLE_LIMIT = 100
NEWS_SUMMARY_LIMIT = 150


def format_number(value: Optional[float], decimals: int = 2) -> str:
    """Format a number with thousands separators, or N/A."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:,.{decimals}f}"


def format_signed(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:+,.2f}{suffix}"


def format_large_number(value: Optional[float]) -> str:
    """Abbreviate large values: T, B, Cr (crore), L (lakh), K."""
    if value is None:
        return NOT_AVAILABLE
    magnitude = abs(value)
    for threshold, unit in ((1e12, "T"), (1e9, "B"), (1e7, "Cr"), (1e5, "L"), (1e3, "K")):
        if magnitude >= threshold:
            return f"{value / threshold:.2f}{unit}"
    return format_number(value)


def _truncate(text: str, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _trend(change: Optional[float]) -> str:
    if change is None:
        return "•"
    return "📈" if change >= 0 else "📉"


def format_quote(record: QuoteRecord) -> str:
    """Format a single quote: price/change, key metrics, ranges, classification."""
    lines = [
        f"{_trend(record.change)} **{record.name} ({record.symbol})**",
        f"Current Price: {format_number(record.price)}",
        f"Change: {format_signed(record.change)} ({format_signed(record.change_percent, '%')})",
        "",
        "**Key Metrics**",
        f"Market Cap: {format_large_number(record.market_cap)}",
        f"P/E Ratio: {format_number(record.pe)}",
        f"EPS: {format_number(record.eps)}",
        f"Volume: {format_large_number(record.volume)}",
        "",
        f"Day Range: {format_number(record.day_low)} - {format_number(record.day_high)}",
        f"52W Range: {format_number(record.year_low)} - {format_number(record.year_high)}",
        "",
        f"Sector: {record.sector or NOT_AVAILABLE}",
        f"Industry: {record.industry or NOT_AVAILABLE}",
        f"Source: {record.source}",
    ]
    return "\n".join(lines)


def format_movers(movers: Iterable[MoverItem], kind: MoverKind) -> str:
    """Format a ranked gainers/losers list, top ten at most."""
    title = "Top Gainers" if kind is MoverKind.GAINERS else "Top Losers"
    emoji = "📈" if kind is MoverKind.GAINERS else "📉"
    lines = [f"{emoji} **{title} Today**", ""]
    for rank, item in enumerate(list(movers)[:MAX_MOVERS], start=1):
        lines.append(f"{rank}. **{item.symbol}** - {item.name}")
        lines.append(
            f"   {format_number(item.price)} "
            f"{format_signed(item.change)} ({format_signed(item.change_percent, '%')})"
        )
    return "\n".join(lines)


def format_news(items: Iterable[NewsItem], symbol: Optional[str] = None) -> str:
    """Format up to five headlines with date and a short summary."""
    title = f"📰 **Latest News for {symbol}**" if symbol else "📰 **Latest Market News**"
    lines = [title, ""]
    for rank, item in enumerate(list(items)[:MAX_NEWS], start=1):
        lines.append(f"{rank}. **{_truncate(item.title, NEWS_TITLE_LIMIT)}**")
        meta = item.source
        if item.published_at is not None:
            meta = f"{item.published_at.date().isoformat()} | {item.source}"
        lines.append(f"   {meta}")
        if item.summary:
            lines.append(f"   {_truncate(item.summary, NEWS_SUMMARY_LIMIT)}")
    return "\n".join(lines)


def _better(
    first: QuoteRecord,
    second: QuoteRecord,
    value_of,
    prefer_lower: bool = False,
) -> Optional[str]:
    a, b = value_of(first), value_of(second)
    if a is None or b is None or a == b:
        return None
    if prefer_lower:
        return first.symbol if a < b else second.symbol
    return first.symbol if a > b else second.symbol


def comparison_analysis(first: QuoteRecord, second: QuoteRecord) -> dict[str, Optional[str]]:
    """Pick the better performer, the larger company and the better value."""
    return {
        "betterPerformer": _better(first, second, lambda r: r.change_percent),
        "largerCompany": _better(first, second, lambda r: r.market_cap),
        "betterValue": _better(
            first,
            second,
            lambda r: r.pe if r.pe is not None and r.pe > 0 else None,
            prefer_lower=True,
        ),
    }


def format_comparison(first: QuoteRecord, second: QuoteRecord) -> str:
    """Format a side-by-side comparison followed by a quick analysis."""
    rows = (
        ("Price", format_number(first.price), format_number(second.price)),
        (
            "Change",
            format_signed(first.change_percent, "%"),
            format_signed(second.change_percent, "%"),
        ),
        (
            "Market Cap",
            format_large_number(first.market_cap),
            format_large_number(second.market_cap),
        ),
        ("P/E Ratio", format_number(first.pe), format_number(second.pe)),
        ("EPS", format_number(first.eps), format_number(second.eps)),
        (
            "52W Range",
            f"{format_number(first.year_low)} - {format_number(first.year_high)}",
            f"{format_number(second.year_low)} - {format_number(second.year_high)}",
        ),
        ("Sector", first.sector or NOT_AVAILABLE, second.sector or NOT_AVAILABLE),
    )
    lines = [f"⚖️ **{first.symbol} vs {second.symbol}**", ""]
    for label, left, right in rows:
        lines.append(f"{label}: {first.symbol} {left} | {second.symbol} {right}")

    analysis = comparison_analysis(first, second)
    lines.extend(
        [
            "",
            "**Quick Analysis**",
            f"Better Performer Today: {analysis['betterPerformer'] or 'Even'}",
            f"Larger Company: {analysis['largerCompany'] or NOT_AVAILABLE}",
            f"Better Value (lower P/E): {analysis['betterValue'] or NOT_AVAILABLE}",
        ]
    )
    return "\n".join(lines)


def format_educational(topic: EducationalTopic) -> str:
    """Format a glossary entry."""
    lines = [f"🎓 **{topic.title}**", "", topic.explanation]
    if topic.formula:
        lines.extend(["", f"Formula: {topic.formula}"])
    lines.extend(["", "**Key Points**"])
    lines.extend(f"• {point}" for point in topic.key_points)
    lines.extend(["", f"Example: {topic.example}"])
    if topic.related_terms:
        lines.append(f"Related: {', '.join(topic.related_terms)}")
    return "\n".join(lines)


def format_market_indices(indices: Iterable[tuple[str, str]]) -> str:
    """Format the static market index reference."""
    lines = ["📊 **Key Market Indices**", ""]
    lines.extend(f"• **{name}**: {description}" for name, description in indices)
    return "\n".join(lines)
