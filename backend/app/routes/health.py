"""
SOP Gateway: Health & Debug Routes
===================================

What:  Liveness probe (GET /health) and configuration overview (GET /debug).
How:   Both answer from process state only; neither touches the store or
       the object store, so they stay 200 while upstreams are down.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from app.config import Settings
from app.schemas.record import DebugResponse, HealthResponse

router = APIRouter(tags=["Health"])

CONFIGURED = "Configured"
NOT_CONFIGURED = "Not Configured"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _presence(value: str) -> str:
    return CONFIGURED if value else NOT_CONFIGURED


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> HealthResponse:
    settings: Settings = request.app.state.settings
    return HealthResponse(
        status="ok",
        timestamp=_utc_now(),
        environment=settings.environment,
    )


@router.get("/debug", response_model=DebugResponse, summary="Configuration presence flags")
async def debug_info(request: Request) -> DebugResponse:
    settings: Settings = request.app.state.settings
    return DebugResponse(
        env=settings.environment,
        supabase_url=_presence(settings.supabase_url),
        supabase_key=_presence(settings.supabase_key),
        table_name=settings.table_name or None,
        s3_bucket=_presence(settings.s3_bucket_name),
        port=settings.port,
        timestamp=_utc_now(),
    )
