"""
SOP Gateway: Diagnostic Route
==============================

What:  GET /api/test/list-all, a raw dump of the SOP table with its exact
       row count and column names.
Who:   Operators checking that the key can read the table (row level
       security) and that the column names match ASSET_FIELD.
When:  Mounted by create_app() outside production only.
"""

from fastapi import APIRouter, Depends

from app.routes.records import get_record_service
from app.schemas.record import DiagnosticListResponse, ErrorResponse
from app.services.record_service import RecordService

router = APIRouter(prefix="/api/test", tags=["Diagnostics"])


@router.get(
    "/list-all",
    response_model=DiagnosticListResponse,
    responses={500: {"description": "Upstream error", "model": ErrorResponse}},
    summary="List every record (debugging aid)",
)
async def list_all_records(
    service: RecordService = Depends(get_record_service),
) -> DiagnosticListResponse:
    summary = await service.list_all()
    return DiagnosticListResponse(**summary)
