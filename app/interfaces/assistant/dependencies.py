"""
Dependency injection for the assistant bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection.
These are the composition root for the assistant context.

Stateful collaborators (session store, gateway with its quote cache,
Groq client) are built once per process; use cases are built per
request.
"""

import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy import create_engine

from app.application.assistant.command_handlers import CommandHandlers
from app.application.assistant.command_rules import CommandDispatcher
from app.application.assistant.delete_chat_session import DeleteChatSessionUseCase
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
from app.application.assistant.turn_recorder import TurnRecorder
from app.core.config import settings
from app.domain.assistant.market_data_gateway import MarketDataGateway
from app.domain.assistant.message_validator import MessageValidator
from app.domain.assistant.ports import ChatSessionRepository, TextGenerationPort
from app.domain.assistant.quote_cache import QuoteCache
from app.domain.assistant.symbol_resolver import SymbolResolver
from app.domain.assistant.voice_intent_classifier import VoiceIntentClassifier
from app.infrastructure.assistant.fmp_provider import FmpMarketDataProvider
from app.infrastructure.assistant.groq_text_generator import GroqTextGenerator
from app.infrastructure.assistant.in_memory_session_repository import (
    InMemoryChatSessionRepository,
)
from app.infrastructure.assistant.sql_session_repository import (
    SqlChatSessionRepository,
)
from app.infrastructure.assistant.twelve_data_provider import (
    TwelveDataMarketDataProvider,
)

logger = logging.getLogger(__name__)


def _get_db_engine():
    """Build a SQLAlchemy engine from application settings."""
    return create_engine(settings.database_url, pool_pre_ping=True)


@lru_cache(maxsize=1)
def get_session_repository() -> ChatSessionRepository:
    """Return the process-wide conversation store for the configured backend."""
    if settings.session_backend == "sql":
        # Tables are created on first use.
        return SqlChatSessionRepository(_get_db_engine())
    logger.info("Using in-memory chat history; conversations are lost on restart.")
    return InMemoryChatSessionRepository()


@lru_cache(maxsize=1)
def get_market_data_gateway() -> MarketDataGateway:
    timeout = settings.market_data_timeout_seconds
    cache = None
    if settings.quote_cache_ttl_seconds > 0:
        cache = QuoteCache(
            ttl_seconds=settings.quote_cache_ttl_seconds,
            max_entries=settings.quote_cache_max_entries,
        )
    return MarketDataGateway(
        default_provider=FmpMarketDataProvider(
            settings.fmp_api_key, settings.fmp_base_url, timeout
        ),
        india_provider=TwelveDataMarketDataProvider(
            settings.twelve_data_api_key, settings.twelve_data_base_url, timeout
        ),
        cache=cache,
    )


@lru_cache(maxsize=1)
def get_text_generator() -> TextGenerationPort:
    return GroqTextGenerator(
        api_key=settings.groq_api_key,
        model=settings.groq_model,
        max_tokens=settings.groq_max_tokens,
        temperature=settings.groq_temperature,
    )


@lru_cache(maxsize=1)
def get_symbol_resolver() -> SymbolResolver:
    return SymbolResolver()


def get_message_validator() -> MessageValidator:
    return MessageValidator(
        min_length=settings.message_min_length,
        max_length=settings.message_max_length,
    )


def get_command_dispatcher(
    resolver: SymbolResolver = Depends(get_symbol_resolver),
    gateway: MarketDataGateway = Depends(get_market_data_gateway),
    generator: TextGenerationPort = Depends(get_text_generator),
) -> CommandDispatcher:
    """Build the command dispatcher with the default rule table."""
    return CommandDispatcher(CommandHandlers(resolver, gateway, generator))


def get_send_chat_message_use_case(
    validator: MessageValidator = Depends(get_message_validator),
    dispatcher: CommandDispatcher = Depends(get_command_dispatcher),
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> SendChatMessageUseCase:
    """Build SendChatMessageUseCase with its infrastructure dependencies."""
    return SendChatMessageUseCase(
        validator=validator,
        dispatcher=dispatcher,
        recorder=TurnRecorder(session_repo),
    )


def get_process_voice_command_use_case(
    validator: MessageValidator = Depends(get_message_validator),
    dispatcher: CommandDispatcher = Depends(get_command_dispatcher),
    resolver: SymbolResolver = Depends(get_symbol_resolver),
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> ProcessVoiceCommandUseCase:
    """Build ProcessVoiceCommandUseCase with its infrastructure dependencies."""
    return ProcessVoiceCommandUseCase(
        validator=validator,
        classifier=VoiceIntentClassifier(resolver),
        dispatcher=dispatcher,
        recorder=TurnRecorder(session_repo),
    )


def get_start_chat_session_use_case() -> StartChatSessionUseCase:
    return StartChatSessionUseCase()


def get_end_chat_session_use_case(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> EndChatSessionUseCase:
    return EndChatSessionUseCase(session_repo)


def get_delete_chat_session_use_case(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> DeleteChatSessionUseCase:
    return DeleteChatSessionUseCase(session_repo)


def get_chat_history_use_case(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> GetChatHistoryUseCase:
    return GetChatHistoryUseCase(session_repo)


def get_recent_sessions_use_case(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> GetRecentSessionsUseCase:
    return GetRecentSessionsUseCase(session_repo)


def get_chat_statistics_use_case(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
) -> GetChatStatisticsUseCase:
    return GetChatStatisticsUseCase(session_repo)


def get_stock_quote_use_case(
    gateway: MarketDataGateway = Depends(get_market_data_gateway),
) -> GetStockQuoteUseCase:
    return GetStockQuoteUseCase(gateway)


def get_market_movers_use_case(
    gateway: MarketDataGateway = Depends(get_market_data_gateway),
) -> GetMarketMoversUseCase:
    return GetMarketMoversUseCase(gateway)


def get_market_news_use_case(
    gateway: MarketDataGateway = Depends(get_market_data_gateway),
) -> GetMarketNewsUseCase:
    return GetMarketNewsUseCase(gateway)
