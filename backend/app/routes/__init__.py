# Routes package init
"""
SOP Gateway: API Routes Package
================================

Route Inventory:
    - records.py:      GET /api/sop              (paginated, enriched list)
                       GET /api/sop/{record_id}  (single enriched record)
    - diagnostics.py:  GET /api/test/list-all    (raw table dump, non-production)
    - health.py:       GET /health, GET /debug

Routes stay thin: they parse the request, call RecordService and shape the
response. Errors are raised, never formatted here; main.py owns the
error-formatting stage.
"""
