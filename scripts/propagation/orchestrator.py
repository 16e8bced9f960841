"""Multi-tenant propagation of device data into the inventory service.

A run resolves the tenant stores once, then walks them one at a time in
discovery order. Within a store, pages are fetched strictly in increasing
offset order and pushed to the attribute sink:

  - ``inventory``: every record, 100 per page, one attribute upsert per record
  - ``statuses``: one sweep per lifecycle status, 512 per page, one status
    update per page; may finish with a checkpoint write
  - ``id-data``: every record, 512 per page, one identity update per record

Record and page failures are reported to the observer and counted, and the
pass moves on. StoreUnavailable while paging aborts the current store only.
StoreUnavailable during tenant discovery aborts the run.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from scripts.propagation.errors import (
    EncodingError,
    InvalidVersion,
    SinkError,
    StoreUnavailable,
)
from scripts.propagation.interfaces import AttributeSink, RecordStore
from scripts.propagation.models import (
    STATUS_SWEEP_ORDER,
    MigrationVersion,
    PropagationOutcome,
    RecordFilter,
    StorePassResult,
)
from scripts.propagation.observer import LoggingObserver, PropagationObserver
from scripts.propagation.paginator import DEVICES_BATCH_SIZE, INVENTORY_PAGE_SIZE, iter_pages
from scripts.propagation.propagator import (
    Clock,
    now_millis,
    propagate_identity,
    propagate_record,
    propagate_status_page,
)
from scripts.propagation.tenants import DEFAULT_STORE, select_tenant_stores, tenant_from_store_name


class PropagationMode(str, Enum):
    INVENTORY = "inventory"
    STATUSES = "statuses"
    ID_DATA = "id-data"


class PropagationOrchestrator:
    def __init__(
        self,
        store: RecordStore,
        sink: AttributeSink,
        *,
        observer: Optional[PropagationObserver] = None,
        clock: Clock = now_millis,
        default_store: str = DEFAULT_STORE,
        inventory_page_size: int = INVENTORY_PAGE_SIZE,
        batch_size: int = DEVICES_BATCH_SIZE,
    ) -> None:
        self.store = store
        self.sink = sink
        self.observer = observer or LoggingObserver()
        self.clock = clock
        self.default_store = default_store
        self.inventory_page_size = inventory_page_size
        self.batch_size = batch_size

    def run(
        self,
        mode: PropagationMode | str,
        tenant: Optional[str] = None,
        migration_version: Optional[str] = None,
        dry_run: bool = False,
    ) -> PropagationOutcome:
        """Propagate every selected tenant store and aggregate the results.

        Raises StoreUnavailable only if tenant discovery fails.
        """
        mode = PropagationMode(mode)
        tenant_stores = select_tenant_stores(self.store, tenant, self.default_store)

        outcome = PropagationOutcome(dry_run=dry_run)
        for tenant_store in tenant_stores:
            result = StorePassResult(
                tenant_store=tenant_store,
                tenant=tenant_from_store_name(tenant_store, self.default_store),
            )
            self.observer.store_started(tenant_store, mode.value)
            try:
                if mode is PropagationMode.INVENTORY:
                    self._inventory_pass(result, dry_run)
                elif mode is PropagationMode.STATUSES:
                    self._statuses_pass(result, dry_run)
                else:
                    self._id_data_pass(result, dry_run)
            except StoreUnavailable as exc:
                result.fail(exc)
                self.observer.failure(tenant_store, "giving up on store", exc)

            if mode is PropagationMode.STATUSES and migration_version and not dry_run:
                self._write_checkpoint(result, migration_version)

            self.observer.store_finished(result)
            outcome.results.append(result)

        return outcome

    # ------------------------------------------------------------------
    # Per-store passes
    # ------------------------------------------------------------------

    def _inventory_pass(self, result: StorePassResult, dry_run: bool) -> None:
        for page in iter_pages(self.store, result.tenant_store, self.inventory_page_size):
            for record in page:
                try:
                    propagate_record(record, self.sink, result.tenant, dry_run, self.clock)
                except (EncodingError, SinkError) as exc:
                    result.fail(exc)
                    self.observer.failure(result.tenant_store, f"device {record.id}", exc)
                    continue
                result.processed += 1
                self.observer.record_propagated(result.tenant_store, record.id, dry_run)

    def _statuses_pass(self, result: StorePassResult, dry_run: bool) -> None:
        for status in STATUS_SWEEP_ORDER:
            pages = iter_pages(
                self.store,
                result.tenant_store,
                self.batch_size,
                RecordFilter(status=status),
            )
            for page in pages:
                try:
                    record_ids = propagate_status_page(
                        page, self.sink, result.tenant, status.value, dry_run
                    )
                except SinkError as exc:
                    result.fail(exc)
                    self.observer.failure(
                        result.tenant_store,
                        f"status={status.value} page of {len(page)} devices",
                        exc,
                    )
                    continue
                result.processed += len(record_ids)
                self.observer.page_propagated(
                    result.tenant_store, status.value, record_ids, dry_run
                )

    def _id_data_pass(self, result: StorePassResult, dry_run: bool) -> None:
        for page in iter_pages(self.store, result.tenant_store, self.batch_size):
            for record in page:
                try:
                    propagate_identity(record, self.sink, result.tenant, dry_run)
                except (EncodingError, SinkError) as exc:
                    result.fail(exc)
                    self.observer.failure(result.tenant_store, f"device {record.id}", exc)
                    continue
                result.processed += 1
                self.observer.record_propagated(result.tenant_store, record.id, dry_run)

    def _write_checkpoint(self, result: StorePassResult, label: str) -> None:
        if not result.ok:
            self.observer.checkpoint_skipped(result.tenant_store, label, "errors")
            return

        try:
            version = MigrationVersion.parse(label)
        except InvalidVersion as exc:
            result.fail(exc)
            self.observer.checkpoint_skipped(
                result.tenant_store, label, "bad version provided"
            )
            return

        try:
            self.store.write_checkpoint(result.tenant_store, version)
        except StoreUnavailable as exc:
            result.fail(exc)
            self.observer.failure(result.tenant_store, "checkpoint write", exc)
            return

        result.checkpoint_written = True
        self.observer.checkpoint_written(result.tenant_store, version)


def propagate_inventory(
    store: RecordStore,
    sink: AttributeSink,
    tenant: Optional[str] = None,
    dry_run: bool = False,
    **kwargs,
) -> PropagationOutcome:
    return PropagationOrchestrator(store, sink, **kwargs).run(
        PropagationMode.INVENTORY, tenant=tenant, dry_run=dry_run
    )


def propagate_statuses(
    store: RecordStore,
    sink: AttributeSink,
    tenant: Optional[str] = None,
    migration_version: Optional[str] = None,
    dry_run: bool = False,
    **kwargs,
) -> PropagationOutcome:
    return PropagationOrchestrator(store, sink, **kwargs).run(
        PropagationMode.STATUSES,
        tenant=tenant,
        migration_version=migration_version,
        dry_run=dry_run,
    )


def propagate_id_data(
    store: RecordStore,
    sink: AttributeSink,
    tenant: Optional[str] = None,
    dry_run: bool = False,
    **kwargs,
) -> PropagationOutcome:
    return PropagationOrchestrator(store, sink, **kwargs).run(
        PropagationMode.ID_DATA, tenant=tenant, dry_run=dry_run
    )
