"""
SOP Gateway: Store Connection Check
====================================

What:  `sop-gateway-check` command. Connects to Supabase with the configured
       URL/key, reads up to five rows of TABLE_NAME with the exact row count
       and logs what it found.
Who:   Operators setting up a new environment.

Exit status: 0 when the query succeeded (even with zero rows), 1 otherwise.
"""

import asyncio
import json
import logging
import sys
from typing import Optional

from app.config import Settings, settings as default_settings
from app.database import RecordStore, create_store_client

logger = logging.getLogger("sop_gateway.check")

SAMPLE_SIZE = 5
PREVIEW_CHARS = 500


async def check_connection(settings: Settings, store: Optional[RecordStore] = None) -> bool:
    logger.info("Testing Supabase connection...")
    logger.info("SUPABASE_URL: %s", settings.supabase_url or "(not set)")
    logger.info("TABLE_NAME: %s", settings.table_name or "(not set)")
    logger.info("KEY configured: %s", "Yes" if settings.supabase_key else "No")

    try:
        if store is None:
            client = await create_store_client(settings)
            store = RecordStore(client, settings.table_name)
        rows, total = await store.fetch_sample(SAMPLE_SIZE)
    except Exception as exc:
        logger.error("Connection test failed: %s", exc, exc_info=True)
        return False

    logger.info("Connection successful!")
    logger.info("Total records in database: %s", total)
    logger.info("Fetched %d sample records", len(rows))

    if rows:
        logger.info("Column names: %s", ", ".join(rows[0].keys()))
        preview = json.dumps(rows[0], indent=2, default=str)
        if len(preview) > PREVIEW_CHARS:
            preview = preview[:PREVIEW_CHARS] + "..."
        logger.info("First record sample:\n%s", preview)
    else:
        logger.warning(
            "No data returned! Possible reasons: "
            "1. RLS is still enabled (check the Supabase dashboard) "
            "2. Wrong table name "
            "3. Wrong Supabase project URL/key"
        )
    return True


def main() -> None:
    # Deferred: importing app.main builds the ASGI app
    from app.main import setup_logging

    setup_logging(default_settings)
    ok = asyncio.run(check_connection(default_settings))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
