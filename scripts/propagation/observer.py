"""Side channel for per-record and per-store progress.

The orchestrator never logs directly; it reports to an observer. The default
LoggingObserver turns every event into a structured log line, tests plug in
recording observers instead.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from scripts.propagation.models import MigrationVersion, StorePassResult

logger = logging.getLogger("propagation.orchestrator")


class PropagationObserver:
    """No-op base; override the hooks you care about."""

    def store_started(self, tenant_store: str, mode: str) -> None:
        pass

    def record_propagated(self, tenant_store: str, record_id: str, dry_run: bool) -> None:
        pass

    def page_propagated(
        self,
        tenant_store: str,
        status: str,
        record_ids: Sequence[str],
        dry_run: bool,
    ) -> None:
        pass

    def failure(self, tenant_store: str, subject: str, exc: BaseException) -> None:
        pass

    def checkpoint_written(self, tenant_store: str, version: MigrationVersion) -> None:
        pass

    def checkpoint_skipped(self, tenant_store: str, label: str, reason: str) -> None:
        pass

    def store_finished(self, result: StorePassResult) -> None:
        pass


class LoggingObserver(PropagationObserver):
    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def store_started(self, tenant_store: str, mode: str) -> None:
        self.log.info(
            "Propagating %s from store %s", mode, tenant_store,
            extra={"tenant_store": tenant_store, "mode": mode},
        )

    def record_propagated(self, tenant_store: str, record_id: str, dry_run: bool) -> None:
        msg = "Would propagate device %s" if dry_run else "Propagated device %s"
        self.log.info(
            msg, record_id,
            extra={"tenant_store": tenant_store, "record_id": record_id},
        )

    def page_propagated(
        self,
        tenant_store: str,
        status: str,
        record_ids: Sequence[str],
        dry_run: bool,
    ) -> None:
        msg = (
            "Would set status=%s on %d devices"
            if dry_run
            else "Set status=%s on %d devices"
        )
        self.log.info(
            msg, status, len(record_ids),
            extra={
                "tenant_store": tenant_store,
                "status": status,
                "records": len(record_ids),
            },
        )

    def failure(self, tenant_store: str, subject: str, exc: BaseException) -> None:
        self.log.error(
            "FAILED %s: %s", subject, exc,
            extra={"tenant_store": tenant_store},
        )

    def checkpoint_written(self, tenant_store: str, version: MigrationVersion) -> None:
        self.log.info(
            "Stored migration version %s in %s", version, tenant_store,
            extra={"tenant_store": tenant_store, "version": str(version)},
        )

    def checkpoint_skipped(self, tenant_store: str, label: str, reason: str) -> None:
        self.log.warning(
            "Will not store %s migration version in %s due to %s.",
            label, tenant_store, reason,
            extra={"tenant_store": tenant_store, "version": label},
        )

    def store_finished(self, result: StorePassResult) -> None:
        extra = {
            "tenant_store": result.tenant_store,
            "records": result.processed,
            "failures": result.failures,
        }
        if result.ok:
            self.log.info("Done with store %s", result.tenant_store, extra=extra)
        else:
            self.log.warning(
                "Done with store %s, but there were errors: %s",
                result.tenant_store, result.cause,
                extra=extra,
            )
