"""
SOP Gateway: Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for the outcomes the gateway itself
       decides on.
How:   Each exception carries a message, an optional context dict and the HTTP
       status it maps to. Handlers registered in main.py turn them into JSON.
Who:   Raised by services and route helpers; caught by the global handlers.

Exception Hierarchy:
    GatewayError (base)
    ├── ValidationError   → 400 Bad Request (missing or malformed client input)
    ├── NotFoundError     → 404 Not Found (zero rows for a single-row lookup)
    └── UpstreamError     → 502 Bad Gateway (store answered with something unusable)

Errors raised by the Supabase and boto3 SDKs are NOT wrapped: they propagate
unchanged to the terminal handler, which reads an optional numeric
`status_code` attribute and otherwise answers 500.
"""

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message:  Client-facing error description
        context:  Additional debug info (logged, not returned to the client)
        status_code: HTTP status the error maps to
        kind:     Short error label used as the `error` field of the response
    """

    status_code: int = 500
    kind: str = "Internal Server Error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(GatewayError):
    """
    Raised when client input is missing or unusable.

    When:    Empty record id, page/limit below 1, limit above the configured max.
    HTTP:    400 Bad Request
    """

    status_code = 400
    kind = "Bad Request"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(GatewayError):
    """
    Raised when a single-record lookup matched no row.

    This is an expected outcome, distinct from a store failure: the record
    store returns None for PostgREST's "no rows" answer and the service layer
    converts that into this exception.
    """

    status_code = 404
    kind = "Not Found"

    def __init__(
        self,
        resource: str = "record",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"No {resource} found with ID: {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class UpstreamError(GatewayError):
    """
    Raised when the store replies successfully but with an unusable payload
    (e.g. a list where a single object was expected).
    """

    status_code = 502
    kind = "Bad Gateway"

    def __init__(
        self,
        message: str = "The data store returned an unexpected response",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
