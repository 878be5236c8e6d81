"""
Tests for the market data and text generation adapters.

Each HTTP adapter is exercised against a patched httpx.AsyncClient.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from groq import GroqError

from app.domain.assistant.entities import Message, MoverKind, Sender
from app.domain.assistant.errors import ProviderUnavailableError, TextGenerationError
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.infrastructure.assistant.fmp_provider import FmpMarketDataProvider
from app.infrastructure.assistant.groq_text_generator import GroqTextGenerator
from app.infrastructure.assistant.http_provider import to_datetime, to_float, to_int
from app.infrastructure.assistant.twelve_data_provider import TwelveDataMarketDataProvider

CLIENT_PATH = "app.infrastructure.assistant.http_provider.httpx.AsyncClient"


def _client(payload=None, get_side_effect=None, json_side_effect=None, status_error=None):
    mock_resp = MagicMock()
    mock_resp.raise_for_status = MagicMock(side_effect=status_error)
    if json_side_effect is not None:
        mock_resp.json.side_effect = json_side_effect
    else:
        mock_resp.json.return_value = payload

    mock_client = AsyncMock()
    mock_client.get = AsyncMock(return_value=mock_resp, side_effect=get_side_effect)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestParsingHelpers:
    """Loose number and date parsing for provider payloads."""

    def test_to_float(self) -> None:
        assert to_float(12) == 12.0
        assert to_float("1,234.5") == 1234.5
        assert to_float("(+1.25%)") == 1.25
        assert to_float("-0.8%") == -0.8
        assert to_float("n/a") is None
        assert to_float(None) is None
        assert to_float(True) is None

    def test_to_int(self) -> None:
        assert to_int("1500000") == 1500000
        assert to_int(None) is None

    def test_to_datetime(self) -> None:
        parsed = to_datetime("2024-03-01 14:30:00")
        assert (parsed.year, parsed.hour, parsed.minute) == (2024, 14, 30)
        assert to_datetime("") is None
        assert to_datetime("yesterday") is None


class TestFmpProvider:
    """Financial Modeling Prep adapter."""

    @pytest.mark.asyncio
    async def test_quote_parsed(self) -> None:
        payload = [{
            "symbol": "AAPL",
            "name": "Apple Inc.",
            "price": 189.5,
            "change": 1.2,
            "changesPercentage": 0.64,
            "dayLow": 187.0,
            "dayHigh": 190.1,
            "yearLow": 150.0,
            "yearHigh": 199.6,
            "marketCap": 2.9e12,
            "pe": 29.4,
            "eps": 6.4,
            "volume": 51000000,
        }]
        mock_client = _client(payload)

        with patch(CLIENT_PATH, return_value=mock_client):
            quote = await FmpMarketDataProvider("key").quote("AAPL")

        assert quote.symbol == "AAPL"
        assert quote.price == 189.5
        assert quote.change_percent == 0.64
        assert quote.year_high == 199.6
        assert quote.volume == 51000000
        assert quote.source == "FMP"
        url = mock_client.get.call_args.args[0]
        assert url.endswith("/quote/AAPL")
        assert mock_client.get.call_args.kwargs["params"]["apikey"] == "key"

    @pytest.mark.asyncio
    async def test_empty_quote_is_none(self) -> None:
        with patch(CLIENT_PATH, return_value=_client([])):
            assert await FmpMarketDataProvider("key").quote("NOPE") is None

    @pytest.mark.asyncio
    async def test_quote_without_price_is_none(self) -> None:
        with patch(CLIENT_PATH, return_value=_client([{"symbol": "AAPL", "price": None}])):
            assert await FmpMarketDataProvider("key").quote("AAPL") is None

    @pytest.mark.asyncio
    async def test_error_object_raises(self) -> None:
        payload = {"Error Message": "Invalid API KEY."}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            with pytest.raises(ProviderUnavailableError) as excinfo:
                await FmpMarketDataProvider("bad").quote("AAPL")
        assert "Invalid API KEY" in excinfo.value.reason

    @pytest.mark.asyncio
    async def test_movers(self) -> None:
        payload = [
            {"symbol": "NVDA", "name": "NVIDIA", "price": 900.0, "change": 45.0, "changesPercentage": 5.2},
            {"symbol": "AMD", "name": "AMD", "price": 170.0, "change": 6.0, "changesPercentage": 3.6},
            {"symbol": "TSLA", "name": "Tesla", "price": 200.0, "change": 5.0, "changesPercentage": 2.5},
        ]
        mock_client = _client(payload)

        with patch(CLIENT_PATH, return_value=mock_client):
            movers = await FmpMarketDataProvider("key").movers(MoverKind.GAINERS, limit=2)

        assert [m.symbol for m in movers] == ["NVDA", "AMD"]
        assert movers[0].change_percent == 5.2
        assert mock_client.get.call_args.args[0].endswith("/stock_market/gainers")

    @pytest.mark.asyncio
    async def test_news_for_symbol(self) -> None:
        payload = [{
            "symbol": "AAPL",
            "title": "Apple unveils new chip",
            "url": "https://news.example.com/apple",
            "site": "Example News",
            "publishedDate": "2024-03-01 14:30:00",
            "text": "Apple announced...",
        }]
        mock_client = _client(payload)

        with patch(CLIENT_PATH, return_value=mock_client):
            news = await FmpMarketDataProvider("key").news("AAPL", limit=3)

        assert len(news) == 1
        assert news[0].source == "Example News"
        assert news[0].published_at.year == 2024
        params = mock_client.get.call_args.kwargs["params"]
        assert params["tickers"] == "AAPL"
        assert params["limit"] == 3

    def test_is_configured(self) -> None:
        assert FmpMarketDataProvider("key").is_configured is True
        assert FmpMarketDataProvider("").is_configured is False


class TestTwelveDataProvider:
    """Twelve Data adapter."""

    @pytest.mark.asyncio
    async def test_quote_parsed(self) -> None:
        payload = {
            "symbol": "TCS",
            "name": "Tata Consultancy Services",
            "close": "3850.25",
            "change": "12.5",
            "percent_change": "0.33",
            "low": "3820.0",
            "high": "3860.0",
            "volume": "1200000",
            "fifty_two_week": {"low": "3100.0", "high": "4250.0"},
        }
        mock_client = _client(payload)

        with patch(CLIENT_PATH, return_value=mock_client):
            quote = await TwelveDataMarketDataProvider("key").quote("TCS")

        assert quote.price == 3850.25
        assert quote.change_percent == 0.33
        assert quote.year_low == 3100.0
        assert quote.volume == 1200000
        assert quote.source == "TwelveData"
        assert mock_client.get.call_args.kwargs["params"]["symbol"] == "TCS"

    @pytest.mark.asyncio
    async def test_unknown_symbol_is_none(self) -> None:
        payload = {"code": 404, "message": "symbol not found", "status": "error"}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            assert await TwelveDataMarketDataProvider("key").quote("ZZZ") is None

    @pytest.mark.asyncio
    async def test_quota_error_raises(self) -> None:
        payload = {"code": 429, "message": "run out of API credits", "status": "error"}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            with pytest.raises(ProviderUnavailableError):
                await TwelveDataMarketDataProvider("key").quote("TCS")

    @pytest.mark.asyncio
    async def test_movers(self) -> None:
        payload = {
            "values": [
                {"symbol": "INFY", "name": "Infosys", "last": "1500", "change": "-30", "percent_change": "-1.96"},
            ],
            "status": "ok",
        }
        mock_client = _client(payload)

        with patch(CLIENT_PATH, return_value=mock_client):
            movers = await TwelveDataMarketDataProvider("key").movers(MoverKind.LOSERS, limit=5)

        assert movers[0].symbol == "INFY"
        assert movers[0].change_percent == -1.96
        assert mock_client.get.call_args.kwargs["params"]["direction"] == "losers"

    @pytest.mark.asyncio
    async def test_news_is_empty(self) -> None:
        with patch(CLIENT_PATH) as MockClient:
            assert await TwelveDataMarketDataProvider("key").news("TCS") == []
        MockClient.assert_not_called()


class TestHttpFailures:
    """Transport failures surface as ProviderUnavailableError."""

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        mock_client = _client(get_side_effect=httpx.ReadTimeout("slow"))
        with patch(CLIENT_PATH, return_value=mock_client):
            with pytest.raises(ProviderUnavailableError) as excinfo:
                await FmpMarketDataProvider("key").quote("AAPL")
        assert "timeout" in excinfo.value.reason

    @pytest.mark.asyncio
    async def test_http_status(self) -> None:
        request = httpx.Request("GET", "https://api.example.com/quote")
        error = httpx.HTTPStatusError(
            "server error", request=request, response=httpx.Response(503, request=request)
        )
        with patch(CLIENT_PATH, return_value=_client(status_error=error)):
            with pytest.raises(ProviderUnavailableError) as excinfo:
                await TwelveDataMarketDataProvider("key").quote("TCS")
        assert "503" in excinfo.value.reason

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        mock_client = _client(get_side_effect=httpx.ConnectError("refused"))
        with patch(CLIENT_PATH, return_value=mock_client):
            with pytest.raises(ProviderUnavailableError):
                await FmpMarketDataProvider("key").movers(MoverKind.GAINERS)

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        mock_client = _client(json_side_effect=ValueError("not json"))
        with patch(CLIENT_PATH, return_value=mock_client):
            with pytest.raises(ProviderUnavailableError) as excinfo:
                await FmpMarketDataProvider("key").news()
        assert "malformed" in excinfo.value.reason


class TestMalformedPayloads:
    """Wrongly shaped replies count as provider outages, never as crashes."""

    @pytest.mark.asyncio
    async def test_year_range_not_an_object(self) -> None:
        """A scalar 52-week field leaves the year range empty."""
        payload = {"symbol": "TCS", "close": "100", "fifty_two_week": "N/A"}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            quote = await TwelveDataMarketDataProvider("key").quote("TCS")

        assert quote.price == 100.0
        assert quote.year_low is None
        assert quote.year_high is None

    @pytest.mark.asyncio
    async def test_movers_values_not_a_list(self) -> None:
        with patch(CLIENT_PATH, return_value=_client({"values": {"symbol": "TCS"}})):
            with pytest.raises(ProviderUnavailableError) as excinfo:
                await TwelveDataMarketDataProvider("key").movers(MoverKind.GAINERS)
        assert "malformed" in excinfo.value.reason

    @pytest.mark.asyncio
    async def test_unhashable_error_code(self) -> None:
        payload = {"status": "error", "code": {"detail": "bad"}, "message": "boom"}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            with pytest.raises(ProviderUnavailableError):
                await TwelveDataMarketDataProvider("key").quote("TCS")

    def test_parsing_guard_wraps_lookup_errors(self) -> None:
        provider = FmpMarketDataProvider("key")
        with pytest.raises(ProviderUnavailableError) as excinfo:
            with provider._parsing("/quote"):
                {}["symbol"]
        assert excinfo.value.reason == "malformed payload on /quote"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "not json structure",
            [1, 2, "x"],
            [{"symbol": "TCS", "price": {"value": 1}}],
            {"symbol": "TCS", "close": ["100"]},
            {"status": "error", "code": [500], "message": "boom"},
        ],
    )
    async def test_gateway_quote_returns_none(self, payload) -> None:
        """Every malformed reply from both providers ends in a miss."""
        gateway = MarketDataGateway(
            FmpMarketDataProvider("key"), TwelveDataMarketDataProvider("key")
        )
        with patch(CLIENT_PATH, return_value=_client(payload)):
            assert await gateway.get_quote("TCS") is None

    @pytest.mark.asyncio
    async def test_gateway_quote_survives_scalar_year_range(self) -> None:
        gateway = MarketDataGateway(
            FmpMarketDataProvider("key"), TwelveDataMarketDataProvider("key")
        )
        payload = {"symbol": "TCS", "close": "100", "fifty_two_week": "N/A"}
        with patch(CLIENT_PATH, return_value=_client(payload)):
            quote = await gateway.get_quote("TCS")

        assert quote.source == "TwelveData"
        assert quote.year_high is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("values", ["oops", 5, {"symbol": "TCS"}])
    async def test_gateway_movers_empty(self, values) -> None:
        gateway = MarketDataGateway(
            FmpMarketDataProvider("key"), TwelveDataMarketDataProvider("key")
        )
        with patch(CLIENT_PATH, return_value=_client({"values": values})):
            assert await gateway.get_movers(MoverKind.LOSERS) == []


def _completion(content):
    completion = MagicMock()
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    return completion


class TestGroqTextGenerator:
    """Groq chat completion adapter."""

    def test_disabled_without_key(self) -> None:
        assert GroqTextGenerator(api_key="").is_enabled is False

    @pytest.mark.asyncio
    async def test_disabled_generate_raises(self) -> None:
        with pytest.raises(TextGenerationError):
            await GroqTextGenerator(api_key="").generate("hi", [])

    @pytest.mark.asyncio
    async def test_generate_sends_history(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion("  Diversify.  "))
        generator = GroqTextGenerator(api_key="", model="test-model", client=client)
        history = [
            Message(text="hello", sender=Sender.USER),
            Message(text="Hi there!", sender=Sender.ASSISTANT),
        ]

        reply = await generator.generate("how do I reduce risk?", history)

        assert reply == "Diversify."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        roles = [m["role"] for m in kwargs["messages"]]
        assert roles == ["system", "user", "assistant", "user"]
        assert kwargs["messages"][-1]["content"] == "how do I reduce risk?"

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=GroqError("rate limited"))
        generator = GroqTextGenerator(api_key="", client=client)

        with pytest.raises(TextGenerationError):
            await generator.generate("hi", [])

    @pytest.mark.asyncio
    async def test_empty_completion(self) -> None:
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=_completion(""))
        generator = GroqTextGenerator(api_key="", client=client)

        with pytest.raises(TextGenerationError):
            await generator.generate("hi", [])
