"""
SOP Gateway: Record Route Handlers
===================================

What:  GET /api/sop (paginated list) and GET /api/sop/{record_id} (detail).
How:   Parses query strings, builds a RecordService from the shared clients
       on app.state, delegates, and wraps the result in the response schema.

Query parameters arrive as raw strings: a missing or non-numeric page/limit
falls back to the default (1 and 10) instead of producing a 422. Numeric
values below 1 are a 400. There is no upper bound on limit.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.exceptions import ValidationError
from app.schemas.record import (
    ErrorResponse,
    PaginationMeta,
    RecordListResponse,
    RecordResponse,
)
from app.services.record_service import DEFAULT_LIMIT, DEFAULT_PAGE, RecordService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["SOP"])


def get_record_service(request: Request) -> RecordService:
    """
    FastAPI dependency assembling a RecordService for this request.

    The store and resolver are the process-wide instances created in the
    lifespan (or injected by create_app); the service itself holds no state.
    """
    state = request.app.state
    return RecordService(
        store=state.record_store,
        resolver=state.link_resolver,
        asset_field=state.settings.asset_field,
        signed_asset_field=state.settings.signed_asset_field,
    )


def parse_positive_int(raw: Optional[str], default: int, field: str) -> int:
    """
    Lenient integer parsing for paging parameters.

    None, "" and non-numeric input → default. Integers below 1 → ValidationError.
    """
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    if value < 1:
        raise ValidationError(message=f"{field} must be a positive integer", field=field)
    return value


@router.get(
    "/sop",
    response_model=RecordListResponse,
    responses={
        400: {"description": "Invalid page or limit", "model": ErrorResponse},
        500: {"description": "Upstream error", "model": ErrorResponse},
    },
    summary="List SOP records with pagination",
)
async def list_records(
    page: Optional[str] = Query(default=None, description="1-based page number (default 1)"),
    limit: Optional[str] = Query(default=None, description="Page size (default 10)"),
    service: RecordService = Depends(get_record_service),
) -> RecordListResponse:
    page_number = parse_positive_int(page, DEFAULT_PAGE, "page")
    page_size = parse_positive_int(limit, DEFAULT_LIMIT, "limit")

    result = await service.list_records(page=page_number, limit=page_size)

    return RecordListResponse(
        data=result.records,
        pagination=PaginationMeta(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.get(
    "/sop/{record_id}",
    response_model=RecordResponse,
    responses={
        400: {"description": "Missing id", "model": ErrorResponse},
        404: {"description": "No record with this id", "model": ErrorResponse},
        500: {"description": "Upstream error", "model": ErrorResponse},
    },
    summary="Get a single SOP record by ID",
)
async def get_record(
    record_id: str,
    service: RecordService = Depends(get_record_service),
) -> RecordResponse:
    record = await service.get_record(record_id)
    logger.info("Successfully fetched data for ID: %s", record_id)
    return RecordResponse(data=record)
