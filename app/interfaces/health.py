"""
Health check router.

Liveness reports status and version only. Readiness also checks that
the conversation store answers; market data providers are not probed
since every assistant path degrades without them.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.domain.assistant.ports import ChatSessionRepository
from app.interfaces.assistant.dependencies import get_session_repository
from app.interfaces.assistant.schemas import HealthResponse, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status and version.",
)
def health_check() -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(status="ok", version=settings.version)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
    summary="Readiness check",
)
def readiness_check(
    session_repo: ChatSessionRepository = Depends(get_session_repository),
):
    """Return 503 while the conversation store is unreachable."""
    store_ok = session_repo.ping()
    body = ReadinessResponse(
        status="ok" if store_ok else "degraded",
        version=settings.version,
        session_store=store_ok,
    )
    if not store_ok:
        return JSONResponse(status_code=503, content=body.model_dump(by_alias=True))
    return body
