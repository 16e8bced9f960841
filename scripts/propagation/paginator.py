"""Fixed-size offset pagination over a tenant store."""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from scripts.propagation.interfaces import RecordStore
from scripts.propagation.models import Record, RecordFilter

logger = logging.getLogger("propagation.paginator")

# Page size for full-listing (per-record attribute) propagation.
INVENTORY_PAGE_SIZE = 100
# Page size for status and id-data propagation.
DEVICES_BATCH_SIZE = 512


def iter_pages(
    store: RecordStore,
    tenant_store: str,
    limit: int,
    record_filter: Optional[RecordFilter] = None,
    offset: int = 0,
) -> Iterator[list[Record]]:
    """Yield non-empty pages until the store returns a short page.

    StoreUnavailable from the store propagates to the caller.
    """
    if limit <= 0:
        raise ValueError(f"page size must be positive, got {limit}")

    while True:
        page = store.get_page(tenant_store, offset, limit, record_filter)
        logger.debug(
            "Fetched %d records at offset %d",
            len(page), offset,
            extra={"tenant_store": tenant_store, "records": len(page)},
        )
        if page:
            yield page
        if len(page) < limit:
            return
        offset += limit
