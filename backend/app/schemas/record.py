"""
SOP Gateway: Pydantic Response Schemas
=======================================

What:  Pydantic models defining the JSON contract of every endpoint.
How:   FastAPI serializes route return values through these models (by alias,
       which keeps the camelCase keys clients already consume, such as
       `totalPages`) and derives the OpenAPI document from them.

Records themselves are open-ended: whatever columns the table has are passed
through verbatim, plus the signed asset field added by enrichment. They are
therefore typed as plain dicts rather than modelled field by field.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Record Responses
# ══════════════════════════════════════════════════════════════════════════


class RecordResponse(BaseModel):
    """Returned by GET /api/sop/{id}."""
    success: bool = Field(default=True)
    data: Dict[str, Any] = Field(description="Store record plus its signed asset link")


class PaginationMeta(BaseModel):
    """
    Paging state of a list response.

    total is the exact count reported by the store; total_pages is
    ceil(total / limit) and is 0 for an empty table.
    """
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(description="1-based page number")
    limit: int = Field(description="Page size")
    total: int = Field(description="Total number of records in the table")
    total_pages: int = Field(alias="totalPages", description="Number of pages at this page size")


class RecordListResponse(BaseModel):
    """Returned by GET /api/sop."""
    success: bool = Field(default=True)
    data: List[Dict[str, Any]] = Field(description="Enriched records, newest first")
    pagination: PaginationMeta


class DiagnosticListResponse(BaseModel):
    """Returned by GET /api/test/list-all (non-production only)."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(default=True)
    count: int = Field(description="Rows returned")
    total_in_database: Optional[int] = Field(alias="totalInDatabase", default=None)
    data: List[Dict[str, Any]]
    columns: List[str] = Field(description="Column names of the first row")
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Service Responses
# ══════════════════════════════════════════════════════════════════════════


class HealthResponse(BaseModel):
    status: str = Field(default="ok")
    timestamp: str = Field(description="Current server time (UTC ISO 8601)")
    environment: str


class DebugResponse(BaseModel):
    """
    Configuration overview for operators.

    Only presence flags ("Configured" / "Not Configured") are reported for
    credentials and endpoints, never their values.
    """
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(default="Debug information")
    env: str
    supabase_url: str = Field(alias="supabaseUrl")
    supabase_key: str = Field(alias="supabaseKey")
    table_name: Optional[str] = Field(alias="tableName", default=None)
    s3_bucket: str = Field(alias="s3Bucket")
    port: int
    timestamp: str


# ══════════════════════════════════════════════════════════════════════════
# Error Responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Shape of every error body.

    error:   Error kind, e.g. "Bad Request", "Not Found", or the exception
             class name for unexpected errors
    message: Human-readable description (generic in production for 5xx)
    stack:   Traceback, outside production only
    """
    error: str
    message: str
    stack: Optional[str] = None
    code: Optional[str] = None
    hint: Optional[str] = None
    details: Optional[Any] = None
    request_id: Optional[str] = None
