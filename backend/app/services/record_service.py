"""
SOP Gateway: Record Service (Enrichment & Pagination Orchestrator)
===================================================================

What:  Business logic behind the SOP endpoints: enrich a record with its
       signed asset link, list a page of enriched records, fetch one record.
How:   Composes a RecordStore (queries) and a LinkResolver (signed links),
       both received through the constructor.
Who:   Built per request by routes/records.py from the clients on app.state.

Orchestration Flow (GET /api/sop):
    ┌──────────┐    ┌──────────────┐    ┌──────────────────────┐    ┌────────┐
    │ page,    │───▶│  PageWindow  │───▶│ RecordStore          │───▶│ gather │
    │ limit    │    │ offset/range │    │ count=exact + window │    │ enrich │
    └──────────┘    └──────────────┘    └──────────────────────┘    └────────┘

    asyncio.gather returns results in argument order, so the concurrent
    enrichment fan-out cannot change the order the store reported.

Outcomes:
    Success          → enriched record(s)
    ValidationError  → empty id (raised before any query)
    NotFoundError    → single-row lookup matched nothing
    anything else    → propagated unchanged from the store
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.database import Record, RecordStore
from app.exceptions import NotFoundError, ValidationError
from app.services.link_resolver import LinkResolver

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class PageWindow:
    """
    A (page, limit) request mapped onto store offsets.

    page and limit are 1-based and must both be >= 1.
    """

    page: int
    limit: int

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError(message="page must be a positive integer", field="page")
        if self.limit < 1:
            raise ValidationError(message="limit must be a positive integer", field="limit")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end(self) -> int:
        """Inclusive index of the last row in the window."""
        return self.offset + self.limit - 1

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)


@dataclass
class RecordPage:
    records: List[Record]
    page: int
    limit: int
    total: int
    total_pages: int


class RecordService:
    """
    Enrichment, pagination and single-record lookup.

    Args:
        store:              Query layer over the SOP table.
        resolver:           Produces signed links for asset references.
        asset_field:        Record field holding the asset reference.
        signed_asset_field: Field added by enrichment.
    """

    def __init__(
        self,
        store: RecordStore,
        resolver: LinkResolver,
        asset_field: str = "audio_url",
        signed_asset_field: str = "signed_audio_url",
    ):
        self.store = store
        self.resolver = resolver
        self.asset_field = asset_field
        self.signed_asset_field = signed_asset_field

    async def enrich(self, record: Record) -> Record:
        """
        Return a copy of `record` with the signed asset link attached.

        The signed field is always present: None when the record carries no
        asset reference. The input dict is left untouched and existing keys
        keep their order.
        """
        reference = record.get(self.asset_field)
        link = await self.resolver.resolve(reference) if reference else None
        return {**record, self.signed_asset_field: link}

    async def list_records(self, page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> RecordPage:
        """
        Fetch one page of records, newest first, and enrich every row.

        Raises:
            ValidationError: page or limit below 1.
            Any store error, unchanged.
        """
        window = PageWindow(page=page, limit=limit)
        logger.info("Fetching records (page: %d, limit: %d)", window.page, window.limit)

        rows, total = await self.store.fetch_page(window.offset, window.limit)
        records = await asyncio.gather(*(self.enrich(row) for row in rows))

        logger.info("Fetched %d records (total in table: %d)", len(records), total)
        return RecordPage(
            records=list(records),
            page=window.page,
            limit=window.limit,
            total=total,
            total_pages=window.total_pages(total),
        )

    async def get_record(self, record_id: Optional[str]) -> Record:
        """
        Fetch a single record by id and enrich it.

        Raises:
            ValidationError: id missing or blank (no query is issued).
            NotFoundError:   no row with that id.
            Any other store error, unchanged.
        """
        if not record_id or not str(record_id).strip():
            raise ValidationError(message="ID parameter is required", field="id")

        logger.info("Fetching record for ID: %s", record_id)
        row = await self.store.fetch_by_id(record_id)
        if row is None:
            raise NotFoundError(resource="record", resource_id=record_id)

        return await self.enrich(row)

    async def list_all(self) -> Dict[str, Any]:
        """
        Diagnostic dump of the whole table, without enrichment.

        Reports the column names of the first row so that a misnamed field
        shows up immediately, and a hint when nothing came back (usually row
        level security hiding the rows from the configured key).
        """
        logger.info("Fetching ALL records from %s", self.store.table_name)
        rows, total = await self.store.fetch_all()
        logger.info("Found %d records (total in DB: %s)", len(rows), total)
        return {
            "count": len(rows),
            "totalInDatabase": total,
            "data": rows,
            "columns": list(rows[0].keys()) if rows else [],
            "message": (
                "Data fetched successfully"
                if rows
                else "No data found - check if RLS is disabled"
            ),
        }
