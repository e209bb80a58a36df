"""
SOP Gateway: Record Store Access
=================================

What:  Async Supabase client construction and the `RecordStore` wrapper that
       issues every query the gateway needs against the SOP table.
How:   `create_store_client()` builds one `supabase.AsyncClient` per process
       (called from the FastAPI lifespan). `RecordStore` receives that client
       and the table name through its constructor, so tests substitute fakes.
Who:   Used by RecordService (services/record_service.py) and the
       connection check command.

Query shapes (PostgREST):
    fetch_page:   select=*  Prefer: count=exact
                  order=created_at.desc,id.desc  Range: offset-(offset+limit-1)
    fetch_by_id:  select=*  id=eq.<id>  Accept: object (single row)
    fetch_all:    select=*  Prefer: count=exact
    fetch_sample: select=*  Prefer: count=exact  limit=<n>

Error policy:
    PostgREST answers a single-row request that matched nothing with error
    code PGRST116. That case returns None from fetch_by_id. Every other
    APIError propagates unchanged.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from supabase.lib.client_options import AsyncClientOptions

from app.config import Settings
from app.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# PostgREST: "JSON object requested, multiple (or no) rows returned"
NO_ROWS_ERROR_CODE = "PGRST116"

# Sort order for paginated listings: newest first, id breaks timestamp ties
CREATED_AT_COLUMN = "created_at"
ID_COLUMN = "id"

Record = Dict[str, Any]


async def create_store_client(settings: Settings) -> AsyncClient:
    """
    Create the process-wide async Supabase client.

    The PostgREST timeout is the only deadline applied to store queries;
    nothing is retried.
    """
    options = AsyncClientOptions(
        postgrest_client_timeout=settings.store_timeout_seconds,
    )
    client = await acreate_client(
        settings.supabase_url,
        settings.supabase_key,
        options=options,
    )
    logger.info("Supabase client created for %s", settings.supabase_url)
    return client


def is_no_rows_error(exc: APIError) -> bool:
    return getattr(exc, "code", None) == NO_ROWS_ERROR_CODE


class RecordStore:
    """
    Thin query layer over one Supabase table.

    Stateless from a request's point of view: the only thing it holds is the
    shared client handle, which is safe to use from concurrent coroutines.
    """

    def __init__(self, client: AsyncClient, table_name: str):
        self._client = client
        self.table_name = table_name

    def _table(self):
        return self._client.table(self.table_name)

    async def fetch_page(self, offset: int, limit: int) -> Tuple[List[Record], int]:
        """
        Fetch one window of rows plus the exact total row count.

        Args:
            offset: Zero-based index of the first row
            limit:  Window size (>= 1)

        Returns:
            (rows in store order, total count reported by the store)
        """
        response = await (
            self._table()
            .select("*", count="exact")
            .order(CREATED_AT_COLUMN, desc=True)
            .order(ID_COLUMN, desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        rows = list(response.data or [])
        total = response.count if response.count is not None else len(rows)
        return rows, total

    async def fetch_by_id(self, record_id: str) -> Optional[Record]:
        """
        Fetch exactly one row by id.

        Returns:
            The row, or None when no row matched.

        Raises:
            APIError: any store failure other than "no rows".
            UpstreamError: the store answered with something that is not a row.
        """
        try:
            response = await (
                self._table()
                .select("*")
                .eq(ID_COLUMN, record_id)
                .single()
                .execute()
            )
        except APIError as exc:
            if is_no_rows_error(exc):
                logger.info("No row in %s with id=%s", self.table_name, record_id)
                return None
            raise

        if not isinstance(response.data, dict):
            raise UpstreamError(
                context={"table": self.table_name, "record_id": record_id},
            )
        return response.data

    async def fetch_all(self) -> Tuple[List[Record], Optional[int]]:
        """Every row of the table with the exact count (diagnostics only)."""
        response = await self._table().select("*", count="exact").execute()
        return list(response.data or []), response.count

    async def fetch_sample(self, limit: int = 5) -> Tuple[List[Record], Optional[int]]:
        """Up to `limit` rows plus the exact count (connection check)."""
        response = await (
            self._table()
            .select("*", count="exact")
            .limit(limit)
            .execute()
        )
        return list(response.data or []), response.count
