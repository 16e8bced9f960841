"""Wire configuration, the record store and the inventory client into a run."""

from __future__ import annotations

import logging
from typing import Optional

from scripts.propagation.config import JobConfig, PropagationConfig
from scripts.propagation.db import Database
from scripts.propagation.inventory import InventoryClient
from scripts.propagation.models import PropagationOutcome
from scripts.propagation.orchestrator import PropagationMode, PropagationOrchestrator

logger = logging.getLogger("propagation.runner")


def run_job(config: PropagationConfig, job: Optional[JobConfig] = None) -> PropagationOutcome:
    """Run one propagation job; ``job`` overrides the job section of ``config``.

    Raises ValueError for an unknown mode and StoreUnavailable if the database
    is unreachable or tenant discovery fails.
    """
    job = job or config.job
    mode = PropagationMode(job.mode)

    db = Database(config.database, default_store=config.default_store)
    try:
        orchestrator = PropagationOrchestrator(
            db,
            InventoryClient(config.inventory),
            default_store=config.default_store,
            inventory_page_size=config.inventory_page_size,
            batch_size=config.batch_size,
        )
        logger.info(
            "Starting %s propagation%s",
            mode.value, " (dry run)" if job.dry_run else "",
            extra={"mode": mode.value, "tenant": job.tenant},
        )
        outcome = orchestrator.run(
            mode,
            tenant=job.tenant,
            migration_version=job.migration_version,
            dry_run=job.dry_run,
        )
    finally:
        db.close()

    logger.info(
        "All stores processed, exiting.",
        extra={"records": outcome.processed, "failures": len(outcome.failed_stores)},
    )
    return outcome
