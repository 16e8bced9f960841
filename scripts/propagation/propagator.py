"""Single record / single page pushes into the attribute sink."""

from __future__ import annotations

import time
from typing import Callable, Sequence

from scripts.propagation.attributes import id_data_to_attributes
from scripts.propagation.interfaces import AttributeSink
from scripts.propagation.models import Attribute, Record

SOURCE_LABEL = "deviceauth"

Clock = Callable[[], int]


def now_millis() -> int:
    return int(time.time() * 1000)


def propagate_record(
    record: Record,
    sink: AttributeSink,
    tenant: str,
    dry_run: bool,
    clock: Clock = now_millis,
) -> list[Attribute]:
    """Map one record's identity payload and upsert it unless dry-run.

    Returns the attributes that were (or would have been) sent. Mapping and
    sink errors are raised to the caller.
    """
    attrs = id_data_to_attributes(record.id_data)
    if dry_run:
        return attrs

    sink.upsert_attributes(record.id, tenant, SOURCE_LABEL, clock(), attrs)
    return attrs


def propagate_status_page(
    records: Sequence[Record],
    sink: AttributeSink,
    tenant: str,
    status: str,
    dry_run: bool,
) -> list[str]:
    """Send one status update covering every record of a page."""
    record_ids = [r.id for r in records]
    if not dry_run:
        sink.set_status(tenant, record_ids, status)
    return record_ids


def propagate_identity(
    record: Record,
    sink: AttributeSink,
    tenant: str,
    dry_run: bool,
) -> list[Attribute]:
    """Send a record's full identity attribute set in one call unless dry-run."""
    attrs = id_data_to_attributes(record.id_data)
    if not dry_run:
        sink.set_identity(tenant, record.id, attrs)
    return attrs
