# Middleware package init
"""
SOP Gateway: Middleware Package
================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    Request ID runs first so the access log line and any error body carry
    the same ID. Responses travel the chain in reverse.
"""
