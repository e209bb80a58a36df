"""
SOP Gateway: FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, routes and exception handlers and
       stores the shared clients on app.state. Clients passed in explicitly
       (tests) are used as-is; the rest are built in the lifespan.
Who:   uvicorn (`uvicorn app.main:app`) or the `sop-gateway` command (run()).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware:  Request ID → Logging → GZip → CORS        │
    │                                                         │
    │  Routes:      GET /health   GET /debug                  │
    │               GET /api/sop  GET /api/sop/{record_id}    │
    │               GET /api/test/list-all (non-production)   │
    │                                                         │
    │  app.state:   settings, record_store, link_resolver     │
    │                                                         │
    │  Errors:      ValidationError→400  NotFoundError→404    │
    │               unmatched route→404  everything else→5xx  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → required-key check → Supabase client → S3 signer
    Shutdown: close the Supabase client if this process created it
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import RecordStore, create_store_client
from app.exceptions import GatewayError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import diagnostics, health, records
from app.services.link_resolver import LinkResolver
from app.services.s3_signer import S3AssetSigner
from app.services.signer_base import AssetSigner

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal Server Error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure stdout logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request chatter from the HTTP and AWS stacks
    for noisy in ("uvicorn.access", "httpcore", "httpx", "hpack", "botocore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def missing_config_message(missing: list) -> str:
    return (
        f"Missing required environment variables: {', '.join(missing)}. "
        "Please create a .env file based on .env.example"
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info("SOP Gateway %s starting up...", __version__)

    missing = settings.missing_required()
    if missing:
        message = missing_config_message(missing)
        logger.error(message)
        raise RuntimeError(message)

    owned_client = None
    if app.state.record_store is None:
        owned_client = await create_store_client(settings)
        app.state.record_store = RecordStore(owned_client, settings.table_name)

    if app.state.link_resolver is None:
        signer = S3AssetSigner.from_settings(settings)
        app.state.link_resolver = LinkResolver(signer, settings.signed_url_ttl_seconds)

    logger.info("Environment: %s", settings.environment)
    logger.info("Connected to table: %s", settings.table_name)
    logger.info("Signing assets from bucket: %s", settings.s3_bucket_name)
    logger.info("Available endpoints: GET /health, GET /api/sop, GET /api/sop/{id}")

    yield

    logger.info("SOP Gateway shutting down...")
    if owned_client is not None:
        await owned_client.postgrest.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def _status_from(exc: Exception) -> int:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return 500


def format_error(
    exc: Exception,
    settings: Settings,
    request_id: str,
) -> Dict[str, Any]:
    """
    The single error-formatting stage for unexpected and upstream errors.

    Production: generic message, no stack, no store diagnostics.
    Otherwise: raw message, stack trace, and for PostgREST errors the
    code/hint/details it reported.
    """
    kind = getattr(exc, "kind", None) or type(exc).__name__
    if settings.is_production:
        return {"error": kind, "message": GENERIC_ERROR_MESSAGE, "request_id": request_id}

    body: Dict[str, Any] = {
        "error": kind,
        "message": getattr(exc, "message", None) or str(exc),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        "request_id": request_id,
    }
    if isinstance(exc, APIError):
        body["code"] = exc.code
        body["hint"] = exc.hint
        body["details"] = exc.details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

    Handler hierarchy:
        GatewayError 4xx      → its status, its own message (always shown)
        GatewayError 5xx      → terminal formatting
        HTTP 404/405 routing  → 404 "Route METHOD /path not found"
        APIError / Exception  → terminal formatting, status from the error or 500
    """

    def _settings(request: Request) -> Settings:
        return request.app.state.settings

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError):
        rid = _request_id(request)
        if exc.status_code < 500:
            logger.warning("[%s] %s: %s", rid, exc.kind, exc.message)
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": exc.kind, "message": exc.message, "request_id": rid},
            )
        logger.error("[%s] %s: %s | Context: %s", rid, exc.kind, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=format_error(exc, _settings(request), rid),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        rid = _request_id(request)
        if exc.status_code in (404, 405):
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not Found",
                    "message": f"Route {request.method} {request.url.path} not found",
                    "request_id": rid,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Error", "message": str(exc.detail), "request_id": rid},
            headers=getattr(exc, "headers", None),
        )

    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        status_code = _status_from(exc)
        logger.error("[%s] Error: %s", rid, exc, exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content=format_error(exc, _settings(request), rid),
        )

    app.add_exception_handler(APIError, handle_unexpected_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    record_store: Optional[RecordStore] = None,
    asset_signer: Optional[AssetSigner] = None,
    link_resolver: Optional[LinkResolver] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings:      Configuration; defaults to the environment-loaded one.
        record_store:  Store query layer; built in the lifespan when omitted.
        asset_signer:  Signer wrapped into a LinkResolver when no resolver is given.
        link_resolver: Resolver; built from S3 settings in the lifespan when omitted.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="SOP Gateway API",
        description=(
            "Read-only gateway over the SOP table, adding time-limited signed "
            "links for the audio assets records point at."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    if link_resolver is None and asset_signer is not None:
        link_resolver = LinkResolver(asset_signer, settings.signed_url_ttl_seconds)

    app.state.settings = settings
    app.state.record_store = record_store
    app.state.link_resolver = link_resolver

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(records.router)
    if not settings.is_production:
        app.include_router(diagnostics.router)

    return app


app = create_app()


def run() -> None:
    """Entry point of the `sop-gateway` command."""
    setup_logging(default_settings)
    missing = default_settings.missing_required()
    if missing:
        logger.error(missing_config_message(missing))
        sys.exit(1)

    uvicorn.run(
        "app.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
