"""Shared fakes for the propagation tests.

InMemoryRecordStore and RecordingSink stand in for PostgreSQL and the
inventory service; both record every call so tests can assert on traversal
order and sink traffic.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Optional, Sequence

import pytest

from scripts.propagation.errors import SinkRejected, SinkUnavailable, StoreUnavailable
from scripts.propagation.interfaces import AttributeSink, RecordStore
from scripts.propagation.models import Attribute, MigrationVersion, Record, RecordFilter
from scripts.propagation.observer import PropagationObserver


def make_records(
    count: int,
    status: str = "accepted",
    prefix: str = "dev",
    start: int = 0,
) -> list[Record]:
    return [
        Record(
            id=f"{prefix}-{i:05d}",
            status=status,
            id_data={"mac": f"00:00:00:00:{i // 256:02x}:{i % 256:02x}", "sku": "rpi4"},
        )
        for i in range(start, start + count)
    ]


class InMemoryRecordStore(RecordStore):
    def __init__(
        self,
        stores: Optional[dict[str, list[Record]]] = None,
        tenant_stores: Optional[list[str]] = None,
    ) -> None:
        self.stores = stores or {}
        self.tenant_stores = tenant_stores if tenant_stores is not None else []
        self.fail_discovery = False
        self.fail_pages_for: set[str] = set()
        self.fail_checkpoints_for: set[str] = set()
        self.page_calls: list[tuple[str, int, int, Optional[str]]] = []
        self.checkpoints: dict[str, list[MigrationVersion]] = defaultdict(list)

    def list_tenant_stores(self) -> list[str]:
        if self.fail_discovery:
            raise StoreUnavailable("discovery down")
        return list(self.tenant_stores)

    def get_page(
        self,
        tenant_store: str,
        offset: int,
        limit: int,
        record_filter: Optional[RecordFilter] = None,
    ) -> list[Record]:
        status = record_filter.status.value if record_filter and record_filter.status else None
        self.page_calls.append((tenant_store, offset, limit, status))
        if tenant_store in self.fail_pages_for:
            raise StoreUnavailable(f"{tenant_store} unreachable")
        records = sorted(self.stores.get(tenant_store, []), key=lambda r: r.id)
        if status is not None:
            records = [r for r in records if r.status == status]
        return records[offset:offset + limit]

    def write_checkpoint(self, tenant_store: str, version: MigrationVersion) -> None:
        if tenant_store in self.fail_checkpoints_for:
            raise StoreUnavailable("checkpoint write failed")
        self.checkpoints[tenant_store].append(version)


class RecordingSink(AttributeSink):
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.unavailable_tenants: set[str] = set()
        self.rejected_records: set[str] = set()

    def _check(self, tenant: str, record_ids: Sequence[str]) -> None:
        if tenant in self.unavailable_tenants:
            raise SinkUnavailable(f"inventory down for {tenant}", status_code=503)
        for rid in record_ids:
            if rid in self.rejected_records:
                raise SinkRejected(f"device {rid} rejected", status_code=400)

    def upsert_attributes(
        self,
        record_id: str,
        tenant: str,
        source: str,
        timestamp_ms: int,
        attributes: Sequence[Attribute],
    ) -> None:
        self._check(tenant, [record_id])
        self.calls.append(("upsert", record_id, tenant, source, timestamp_ms, list(attributes)))

    def set_status(self, tenant: str, record_ids: Sequence[str], status: str) -> None:
        self._check(tenant, record_ids)
        self.calls.append(("status", tenant, list(record_ids), status))

    def set_identity(self, tenant: str, record_id: str, attributes: Sequence[Attribute]) -> None:
        self._check(tenant, [record_id])
        self.calls.append(("identity", tenant, record_id, list(attributes)))


class RecordingObserver(PropagationObserver):
    def __init__(self) -> None:
        self.events: list[tuple[Any, ...]] = []

    def store_started(self, tenant_store, mode):
        self.events.append(("started", tenant_store, mode))

    def record_propagated(self, tenant_store, record_id, dry_run):
        self.events.append(("record", tenant_store, record_id, dry_run))

    def page_propagated(self, tenant_store, status, record_ids, dry_run):
        self.events.append(("page", tenant_store, status, list(record_ids), dry_run))

    def failure(self, tenant_store, subject, exc):
        self.events.append(("failure", tenant_store, subject, type(exc).__name__))

    def checkpoint_written(self, tenant_store, version):
        self.events.append(("checkpoint", tenant_store, str(version)))

    def checkpoint_skipped(self, tenant_store, label, reason):
        self.events.append(("checkpoint_skipped", tenant_store, label, reason))

    def store_finished(self, result):
        self.events.append(("finished", result.tenant_store, result.failures))

    def of(self, kind: str) -> list[tuple[Any, ...]]:
        return [e for e in self.events if e[0] == kind]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def fixed_clock():
    return lambda: 1_700_000_000_000
