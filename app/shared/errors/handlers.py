"""
Centralized error handlers for FastAPI.

Maps assistant domain errors to HTTP responses.
No stack traces or internal details are exposed to clients.
All error responses use the ErrorResponse schema.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.domain.assistant.errors import (
    AssistantDomainError,
    InvalidInputError,
    InvalidMoverKindError,
    PersistenceError,
    QuoteNotFoundError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)

HTTP_400 = 400
HTTP_404 = 404
HTTP_500 = 500
HTTP_503 = 503


def _error_response(status_code: int, error: str, detail: str | None = None) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: dict[str, str | None] = {"error": error}
    if detail:
        body["detail"] = detail
    return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register all domain error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(InvalidInputError)
    async def handle_invalid_input(
        _request: Request, exc: InvalidInputError
    ) -> JSONResponse:
        """Handle rejected chat text or malformed symbols."""
        logger.warning("Invalid input: %s", exc.reason)
        return _error_response(HTTP_400, "Invalid input", exc.reason)

    @app.exception_handler(InvalidMoverKindError)
    async def handle_invalid_mover_kind(
        _request: Request, exc: InvalidMoverKindError
    ) -> JSONResponse:
        """Handle movers requests other than gainers/losers."""
        logger.warning("Invalid movers kind: %s", exc.kind)
        return _error_response(HTTP_400, "Invalid movers kind", exc.message)

    @app.exception_handler(QuoteNotFoundError)
    async def handle_quote_not_found(
        _request: Request, exc: QuoteNotFoundError
    ) -> JSONResponse:
        """Handle direct quote lookups no provider could answer."""
        logger.warning("Quote not found: %s", exc.symbol)
        return _error_response(HTTP_404, "Symbol not found", exc.symbol)

    @app.exception_handler(SessionNotFoundError)
    async def handle_session_not_found(
        _request: Request, exc: SessionNotFoundError
    ) -> JSONResponse:
        """Handle missing chat session errors."""
        logger.warning("Session not found: %s", exc.session_id)
        return _error_response(HTTP_404, "Session not found")

    @app.exception_handler(PersistenceError)
    async def handle_persistence(
        _request: Request, exc: PersistenceError
    ) -> JSONResponse:
        """Handle conversation store outages on history endpoints."""
        logger.error("Conversation store error: %s", exc.reason)
        return _error_response(HTTP_503, "Conversation history unavailable")

    @app.exception_handler(AssistantDomainError)
    async def handle_assistant_domain(
        _request: Request, exc: AssistantDomainError
    ) -> JSONResponse:
        """Catch-all for unhandled assistant domain errors."""
        logger.error("Unhandled assistant domain error: %s", exc.message)
        return _error_response(HTTP_500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(HTTP_500, "Internal server error")
