"""
Tests for the assistant application use cases.

Market data is mocked at the gateway; sessions live in the in-memory
repository unless a failure is being simulated.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.application.assistant.command_handlers import CommandHandlers
from app.application.assistant.command_rules import CommandDispatcher
from app.application.assistant.delete_chat_session import DeleteChatSessionUseCase
from app.application.assistant.dtos import (
    GetChatHistoryQuery,
    ProcessVoiceCommand,
    SendChatMessageCommand,
    SessionKey,
)
from app.application.assistant.end_chat_session import EndChatSessionUseCase
from app.application.assistant.get_chat_history import GetChatHistoryUseCase
from app.application.assistant.get_chat_statistics import GetChatStatisticsUseCase
from app.application.assistant.get_market_movers import GetMarketMoversUseCase
from app.application.assistant.get_market_news import GetMarketNewsUseCase
from app.application.assistant.get_recent_sessions import GetRecentSessionsUseCase
from app.application.assistant.get_stock_quote import GetStockQuoteUseCase
from app.application.assistant.process_voice_command import ProcessVoiceCommandUseCase
from app.application.assistant.send_chat_message import SendChatMessageUseCase
from app.application.assistant.start_chat_session import StartChatSessionUseCase
from app.application.assistant.turn_recorder import TurnRecorder, timestamp_after
from app.domain.assistant.entities import (
    MessageType,
    MoverItem,
    MoverKind,
    QuoteRecord,
    Sender,
    utc_now,
)
from app.domain.assistant.errors import (
    InvalidInputError,
    InvalidMoverKindError,
    PersistenceError,
    QuoteNotFoundError,
    SessionNotFoundError,
)
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.message_validator import MessageValidator
from app.domain.assistant.ports import ChatSessionRepository
from app.domain.assistant.symbol_resolver import SymbolResolver
from app.domain.assistant.voice_intent_classifier import VoiceIntentClassifier
from app.infrastructure.assistant.in_memory_session_repository import (
    InMemoryChatSessionRepository,
)

USER = "user-42"
EMAIL = "trader@example.com"


def _record(symbol: str, price: float = 100.0) -> QuoteRecord:
    return QuoteRecord(symbol=symbol, name=f"{symbol} Ltd", price=price, source="FMP")


def _gateway(quotes=None, movers=None) -> MagicMock:
    quotes = quotes or {}
    gateway = MagicMock(spec=MarketDataGateway)
    gateway.get_quote = AsyncMock(side_effect=lambda symbol: quotes.get(symbol))
    gateway.get_quotes = AsyncMock(
        side_effect=lambda symbols: [quotes.get(s) for s in symbols]
    )
    gateway.get_movers = AsyncMock(return_value=movers or [])
    gateway.get_news = AsyncMock(return_value=[])
    return gateway


def _dispatcher(gateway) -> CommandDispatcher:
    return CommandDispatcher(CommandHandlers(SymbolResolver(), gateway))


def _chat_use_case(repo, gateway=None) -> SendChatMessageUseCase:
    return SendChatMessageUseCase(
        MessageValidator(), _dispatcher(gateway or _gateway()), TurnRecorder(repo)
    )


def _voice_use_case(repo, gateway=None) -> ProcessVoiceCommandUseCase:
    return ProcessVoiceCommandUseCase(
        MessageValidator(),
        VoiceIntentClassifier(),
        _dispatcher(gateway or _gateway()),
        TurnRecorder(repo),
    )


class TestSendChatMessage:
    """One chat turn: validate, dispatch, persist."""

    @pytest.mark.asyncio
    async def test_reply_is_persisted(self) -> None:
        repo = InMemoryChatSessionRepository()
        gateway = _gateway(quotes={"TCS": _record("TCS", 3850.0)})
        command = SendChatMessageCommand(
            message="price of TCS", user_id=USER, user_email=EMAIL, session_id="s1"
        )

        reply = await _chat_use_case(repo, gateway).execute(command)

        assert reply.session_id == "s1"
        assert reply.intent == "stock_quote"
        assert reply.stock_data.price == 3850.0
        session = repo.get_session(USER, "s1")
        assert session.metadata.total_messages == 2
        user_message, assistant_message = session.messages
        assert user_message.sender is Sender.USER
        assert user_message.text == "price of TCS"
        assert assistant_message.text == reply.response
        assert assistant_message.stock_data["symbol"] == "TCS"
        assert assistant_message.timestamp > user_message.timestamp

    @pytest.mark.asyncio
    async def test_session_id_minted_when_absent(self) -> None:
        reply = await _chat_use_case(InMemoryChatSessionRepository()).execute(
            SendChatMessageCommand(message="hello")
        )
        assert len(reply.session_id) == 36
        assert reply.intent == "greeting"

    @pytest.mark.asyncio
    async def test_anonymous_turn_not_persisted(self) -> None:
        repo = MagicMock(spec=ChatSessionRepository)
        repo.get_session.return_value = None

        reply = await _chat_use_case(repo).execute(
            SendChatMessageCommand(message="hello", user_id=USER, session_id="s1")
        )

        assert reply.intent == "greeting"
        repo.append_turn.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_still_replies(self) -> None:
        repo = MagicMock(spec=ChatSessionRepository)
        repo.get_session.return_value = None
        repo.append_turn.side_effect = PersistenceError("database is locked")

        reply = await _chat_use_case(repo).execute(
            SendChatMessageCommand(message="what can you do", user_id=USER, user_email=EMAIL)
        )

        assert reply.intent == "help"
        repo.append_turn.assert_called_once()

    @pytest.mark.asyncio
    async def test_invalid_message_rejected(self) -> None:
        repo = MagicMock(spec=ChatSessionRepository)
        with pytest.raises(InvalidInputError):
            await _chat_use_case(repo).execute(SendChatMessageCommand(message="   "))
        repo.append_turn.assert_not_called()

    @pytest.mark.asyncio
    async def test_turns_accumulate(self) -> None:
        repo = InMemoryChatSessionRepository()
        use_case = _chat_use_case(repo)
        for text in ("hello", "what can you do", "show my portfolio"):
            await use_case.execute(
                SendChatMessageCommand(message=text, user_id=USER, user_email=EMAIL, session_id="s1")
            )

        assert repo.get_session(USER, "s1").metadata.total_messages == 6


class TestProcessVoiceCommand:
    """One voice turn: classify, confirm or dispatch, persist."""

    @pytest.mark.asyncio
    async def test_navigation_confirmed(self) -> None:
        repo = InMemoryChatSessionRepository()
        gateway = _gateway()

        reply = await _voice_use_case(repo, gateway).execute(
            ProcessVoiceCommand(
                transcript="go to portfolio",
                user_id=USER,
                user_email=EMAIL,
                session_id="v1",
                confidence=0.93,
            )
        )

        assert reply.intent == "navigate"
        assert reply.intent_data == "/portfolio"
        assert reply.response == "Opening portfolio."
        assert reply.additional_data == {"type": "navigation", "route": "/portfolio"}
        gateway.get_quote.assert_not_called()

        voice_in, voice_out = repo.get_session(USER, "v1").messages
        assert voice_in.type is MessageType.VOICE_INPUT
        assert voice_in.voice_metadata.confidence == 0.93
        assert voice_in.voice_metadata.intent == "navigate"
        assert voice_out.type is MessageType.VOICE_RESPONSE

    @pytest.mark.asyncio
    async def test_action_confirmed(self) -> None:
        reply = await _voice_use_case(InMemoryChatSessionRepository()).execute(
            ProcessVoiceCommand(transcript="buy 10 shares of reliance")
        )

        assert reply.intent == "action"
        assert reply.entities["stockSymbol"] == "RELIANCE"
        assert reply.response == "Okay, let's buy RELIANCE. Please confirm on screen."

    @pytest.mark.asyncio
    async def test_stock_question_uses_dispatcher(self) -> None:
        gateway = _gateway(quotes={"TSLA": _record("TSLA", 250.0)})

        reply = await _voice_use_case(InMemoryChatSessionRepository(), gateway).execute(
            ProcessVoiceCommand(transcript="what's the price of tesla")
        )

        assert reply.intent == "stock_data"
        assert reply.confidence == 0.9
        assert reply.stock_data.symbol == "TSLA"
        gateway.get_quote.assert_awaited_once_with("TSLA")


class TestQueries:
    """Read-only market data use cases."""

    @pytest.mark.asyncio
    async def test_quote_found(self) -> None:
        gateway = _gateway(quotes={"AAPL": _record("AAPL")})
        record = await GetStockQuoteUseCase(gateway).execute(" aapl ")
        assert record.symbol == "AAPL"

    @pytest.mark.asyncio
    async def test_quote_malformed_symbol(self) -> None:
        with pytest.raises(InvalidInputError):
            await GetStockQuoteUseCase(_gateway()).execute("not a symbol!")

    @pytest.mark.asyncio
    async def test_quote_not_found(self) -> None:
        with pytest.raises(QuoteNotFoundError):
            await GetStockQuoteUseCase(_gateway()).execute("ZZZZ")

    @pytest.mark.asyncio
    async def test_movers(self) -> None:
        movers = [MoverItem("NVDA", "NVIDIA", 900.0, 45.0, 5.2)]
        gateway = _gateway(movers=movers)

        result = await GetMarketMoversUseCase(gateway).execute("Gainers", limit=5)

        assert result == movers
        gateway.get_movers.assert_awaited_once_with(MoverKind.GAINERS, limit=5)

    @pytest.mark.asyncio
    async def test_movers_invalid_kind(self) -> None:
        with pytest.raises(InvalidMoverKindError):
            await GetMarketMoversUseCase(_gateway()).execute("sideways")

    @pytest.mark.asyncio
    async def test_news_symbol_normalized(self) -> None:
        gateway = _gateway()
        await GetMarketNewsUseCase(gateway).execute("infy", limit=3)
        gateway.get_news.assert_awaited_once_with("INFY", limit=3)


class TestSessionUseCases:
    """Session lifecycle and history use cases."""

    @pytest.fixture
    def repo(self) -> InMemoryChatSessionRepository:
        return InMemoryChatSessionRepository()

    async def _seed(self, repo, session_id: str = "s1") -> None:
        await _chat_use_case(repo).execute(
            SendChatMessageCommand(message="hello", user_id=USER, user_email=EMAIL, session_id=session_id)
        )

    def test_start_session(self) -> None:
        result = StartChatSessionUseCase().execute()
        assert len(result.session_id) == 36
        assert result.suggestions

    @pytest.mark.asyncio
    async def test_end_session_idempotent(self, repo) -> None:
        await self._seed(repo)
        use_case = EndChatSessionUseCase(repo)

        use_case.execute(SessionKey(USER, "s1"))
        use_case.execute(SessionKey(USER, "s1"))

        assert repo.get_session(USER, "s1").metadata.is_active is False

    def test_end_unknown_session(self, repo) -> None:
        with pytest.raises(SessionNotFoundError):
            EndChatSessionUseCase(repo).execute(SessionKey(USER, "missing"))

    @pytest.mark.asyncio
    async def test_delete_session(self, repo) -> None:
        await self._seed(repo)
        DeleteChatSessionUseCase(repo).execute(SessionKey(USER, "s1"))

        with pytest.raises(SessionNotFoundError):
            DeleteChatSessionUseCase(repo).execute(SessionKey(USER, "s1"))

    @pytest.mark.asyncio
    async def test_history_statistics_and_recent(self, repo) -> None:
        await self._seed(repo, "s1")
        await self._seed(repo, "s2")

        page = GetChatHistoryUseCase(repo).execute(GetChatHistoryQuery(user_id=USER, limit=1))
        stats = GetChatStatisticsUseCase(repo).execute(USER)
        recent = GetRecentSessionsUseCase(repo).execute(USER, limit=5)

        assert page.total == 2
        assert len(page.sessions) == 1
        assert stats.total_messages == 4
        assert len(recent) == 2
        assert all(summary.last_message_preview for summary in recent)


class TestTimestampAfter:
    """Assistant replies sort after the user message."""

    def test_strictly_later(self) -> None:
        future = utc_now().replace(year=utc_now().year + 1)
        assert timestamp_after(future) > future
