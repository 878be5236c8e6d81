"""
FastAPI router for the assistant bounded context.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas and the message validator.
Error mapping is handled by centralized error handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

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
from app.application.assistant.suggestions import STARTER_SUGGESTIONS
from app.core.config import settings
from app.domain.assistant.entities import ChatSession, QuoteRecord
from app.domain.assistant.ports import TextGenerationPort
from app.interfaces.assistant.dependencies import (
    get_chat_history_use_case,
    get_chat_statistics_use_case,
    get_delete_chat_session_use_case,
    get_end_chat_session_use_case,
    get_market_movers_use_case,
    get_market_news_use_case,
    get_process_voice_command_use_case,
    get_recent_sessions_use_case,
    get_send_chat_message_use_case,
    get_start_chat_session_use_case,
    get_stock_quote_use_case,
    get_text_generator,
)
from app.interfaces.assistant.schemas import (
    ChatRequest,
    ChatResponse,
    EndSessionResponse,
    ErrorResponse,
    HistoryResponse,
    MessageSchema,
    MoverSchema,
    MoversResponse,
    NewsItemSchema,
    NewsResponse,
    PaginationSchema,
    QuoteSchema,
    RecentSessionsResponse,
    SessionMetadataSchema,
    SessionSchema,
    SessionSummarySchema,
    StartSessionResponse,
    StatisticsResponse,
    StatusResponse,
    SuggestionsResponse,
    VoiceRequest,
    VoiceResponse,
)
from app.shared.security.rate_limiting import CHAT_RATE_LIMIT, limiter

router = APIRouter(prefix="/assistant", tags=["assistant"])


def _quote(record: Optional[QuoteRecord]) -> Optional[QuoteSchema]:
    return QuoteSchema.model_validate(record.to_dict()) if record else None


def _session(session: ChatSession) -> SessionSchema:
    meta = session.metadata
    return SessionSchema(
        user_id=session.user_id,
        session_id=session.session_id,
        user_email=session.user_email,
        messages=[MessageSchema.model_validate(m.to_dict()) for m in session.messages],
        metadata=SessionMetadataSchema(
            started_at=meta.started_at,
            last_active_at=meta.last_active_at,
            total_messages=meta.total_messages,
            is_active=meta.is_active,
            platform=meta.platform,
            user_agent=meta.user_agent,
            ended_at=meta.ended_at,
        ),
    )


# ── Conversation ─────────────────────────────────────────────────


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="Send a chat message",
    description="Route one message to a command handler and persist the turn.",
)
@limiter.limit(CHAT_RATE_LIMIT)
async def send_chat_message(
    request: Request,
    payload: ChatRequest,
    use_case: SendChatMessageUseCase = Depends(get_send_chat_message_use_case),
) -> ChatResponse:
    """Answer one chat message."""
    command = SendChatMessageCommand(
        message=payload.message,
        user_id=payload.user_id,
        user_email=payload.user_email,
        session_id=payload.session_id,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        platform=payload.platform,
    )
    reply = await use_case.execute(command)
    return ChatResponse(
        response=reply.response,
        intent=reply.intent,
        suggestions=reply.suggestions,
        session_id=reply.session_id,
        timestamp=reply.timestamp,
        stock_data=_quote(reply.stock_data),
        additional_data=reply.additional_data,
    )


@router.post(
    "/voice",
    response_model=VoiceResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="Process a voice transcript",
    description=(
        "Classify a transcript into a UI intent. Navigation and actions are "
        "confirmed; everything else is answered by the chat dispatcher."
    ),
)
@limiter.limit(CHAT_RATE_LIMIT)
async def process_voice_command(
    request: Request,
    payload: VoiceRequest,
    use_case: ProcessVoiceCommandUseCase = Depends(get_process_voice_command_use_case),
) -> VoiceResponse:
    """Answer one voice transcript."""
    command = ProcessVoiceCommand(
        transcript=payload.transcript,
        user_id=payload.user_id,
        user_email=payload.user_email,
        session_id=payload.session_id,
        confidence=payload.confidence,
        language=payload.language,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        platform=payload.platform,
    )
    reply = await use_case.execute(command)
    return VoiceResponse(
        response=reply.response,
        intent=reply.intent,
        intent_data=reply.intent_data,
        confidence=reply.confidence,
        entities=reply.entities,
        suggestions=reply.suggestions,
        session_id=reply.session_id,
        timestamp=reply.timestamp,
        stock_data=_quote(reply.stock_data),
        additional_data=reply.additional_data,
    )


@router.post(
    "/sessions/start",
    response_model=StartSessionResponse,
    summary="Start a chat session",
)
def start_chat_session(
    use_case: StartChatSessionUseCase = Depends(get_start_chat_session_use_case),
) -> StartSessionResponse:
    """Mint a session ID and return the welcome message."""
    result = use_case.execute()
    return StartSessionResponse(
        session_id=result.session_id,
        message=result.message,
        suggestions=result.suggestions,
        timestamp=result.timestamp,
    )


@router.post(
    "/sessions/{session_id}/end",
    response_model=EndSessionResponse,
    responses={404: {"model": ErrorResponse}},
    summary="End a chat session",
    description="Mark a session inactive. Calling it again is a no-op.",
)
def end_chat_session(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    use_case: EndChatSessionUseCase = Depends(get_end_chat_session_use_case),
) -> EndSessionResponse:
    """End one session."""
    use_case.execute(SessionKey(user_id=user_id, session_id=session_id))
    return EndSessionResponse(success=True, session_id=session_id)


@router.delete(
    "/sessions/{session_id}",
    status_code=204,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a chat session",
)
def delete_chat_session(
    session_id: str,
    user_id: str = Query(..., alias="userId", min_length=1),
    use_case: DeleteChatSessionUseCase = Depends(get_delete_chat_session_use_case),
) -> Response:
    """Delete one session and its messages."""
    use_case.execute(SessionKey(user_id=user_id, session_id=session_id))
    return Response(status_code=204)


@router.get(
    "/history/{user_id}",
    response_model=HistoryResponse,
    summary="Get conversation history",
    description="Sessions sorted by last activity, newest first.",
)
def get_chat_history(
    user_id: str,
    session_id: Optional[str] = Query(default=None, alias="sessionId"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    include_messages: bool = Query(default=True, alias="includeMessages"),
    message_limit: int = Query(default=50, ge=0, le=500, alias="messageLimit"),
    use_case: GetChatHistoryUseCase = Depends(get_chat_history_use_case),
) -> HistoryResponse:
    """Return one page of a user's sessions."""
    result = use_case.execute(
        GetChatHistoryQuery(
            user_id=user_id,
            session_id=session_id,
            page=page,
            limit=limit,
            include_messages=include_messages,
            message_limit=message_limit,
        )
    )
    return HistoryResponse(
        sessions=[_session(s) for s in result.sessions],
        pagination=PaginationSchema(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
    )


@router.get(
    "/history/{user_id}/recent",
    response_model=RecentSessionsResponse,
    summary="Get recent sessions",
)
def get_recent_sessions(
    user_id: str,
    limit: int = Query(default=5, ge=1, le=50),
    use_case: GetRecentSessionsUseCase = Depends(get_recent_sessions_use_case),
) -> RecentSessionsResponse:
    """Return the most recently active sessions with a preview."""
    summaries = use_case.execute(user_id, limit=limit)
    return RecentSessionsResponse(
        sessions=[
            SessionSummarySchema(
                session_id=s.session_id,
                last_active_at=s.last_active_at,
                total_messages=s.total_messages,
                is_active=s.is_active,
                last_message=s.last_message_preview,
            )
            for s in summaries
        ]
    )


@router.get(
    "/stats/{user_id}",
    response_model=StatisticsResponse,
    summary="Get conversation statistics",
)
def get_chat_statistics(
    user_id: str,
    use_case: GetChatStatisticsUseCase = Depends(get_chat_statistics_use_case),
) -> StatisticsResponse:
    """Return aggregated statistics for one user."""
    stats = use_case.execute(user_id)
    return StatisticsResponse(
        total_sessions=stats.total_sessions,
        total_messages=stats.total_messages,
        active_sessions=stats.active_sessions,
        average_messages_per_session=stats.average_messages_per_session,
        first_session_at=stats.first_session_at,
        last_active_at=stats.last_active_at,
        active_days=stats.active_days,
    )


@router.get(
    "/suggestions",
    response_model=SuggestionsResponse,
    summary="Starter prompts",
)
def get_suggestions() -> SuggestionsResponse:
    """Return static starter prompts for an empty chat."""
    return SuggestionsResponse(suggestions=list(STARTER_SUGGESTIONS))


# ── Market data ──────────────────────────────────────────────────


@router.get(
    "/stock/{symbol}",
    response_model=QuoteSchema,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get a stock quote",
    description="Resolve a quote through the provider fallback chain.",
)
async def get_stock_quote(
    symbol: str,
    use_case: GetStockQuoteUseCase = Depends(get_stock_quote_use_case),
) -> QuoteSchema:
    """Quote one symbol."""
    return _quote(await use_case.execute(symbol))


@router.get(
    "/movers/{kind}",
    response_model=MoversResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Get top gainers or losers",
)
async def get_market_movers(
    kind: str,
    limit: int = Query(default=10, ge=1, le=50),
    use_case: GetMarketMoversUseCase = Depends(get_market_movers_use_case),
) -> MoversResponse:
    """Return today's movers; empty when no provider answered."""
    movers = await use_case.execute(kind, limit=limit)
    return MoversResponse(
        kind=kind.lower(),
        movers=[MoverSchema.model_validate(m.to_dict()) for m in movers],
    )


@router.get(
    "/news",
    response_model=NewsResponse,
    summary="Get market news",
)
async def get_market_news(
    symbol: Optional[str] = Query(default=None, max_length=20),
    limit: int = Query(default=5, ge=1, le=20),
    use_case: GetMarketNewsUseCase = Depends(get_market_news_use_case),
) -> NewsResponse:
    """Return recent headlines, market-wide or for one symbol."""
    items = await use_case.execute(symbol, limit=limit)
    return NewsResponse(
        symbol=symbol.strip().upper() if symbol else None,
        articles=[NewsItemSchema.model_validate(n.to_dict()) for n in items],
    )


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Assistant configuration status",
)
def get_status(
    generator: TextGenerationPort = Depends(get_text_generator),
) -> StatusResponse:
    """Report which collaborators are configured. Never reports keys."""
    return StatusResponse(
        providers={
            "FMP": bool(settings.fmp_api_key),
            "TwelveData": bool(settings.twelve_data_api_key),
        },
        text_generation=generator.is_enabled,
        session_backend=settings.session_backend,
        quote_cache=settings.quote_cache_ttl_seconds > 0,
    )
