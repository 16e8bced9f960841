"""Container job entry point for inventory propagation.

Runs as a Kubernetes CronJob / Cloud Run Job. Everything is driven by
environment variables (see scripts.propagation.config).

Usage:
  PROPAGATION_MODE=statuses PROPAGATION_MIGRATION_VERSION=2.0.0 python -m scripts.propagation.entrypoints.job
  PROPAGATION_MODE=inventory PROPAGATION_TENANT=acme python -m scripts.propagation.entrypoints.job
  PROPAGATION_MODE=id-data PROPAGATION_DRY_RUN=true python -m scripts.propagation.entrypoints.job
"""

from __future__ import annotations

import logging
import os
import sys

from scripts.propagation.config import load_config
from scripts.propagation.errors import PropagationError
from scripts.propagation.logging_config import configure_logging
from scripts.propagation.runner import run_job

logger = logging.getLogger("propagation.job")


def main() -> int:
    configure_logging(
        os.environ.get("LOG_LEVEL", "INFO"),
        os.environ.get("LOG_FORMAT", "json"),
    )

    try:
        config = load_config()
        outcome = run_job(config)
    except (PropagationError, ValueError) as exc:
        logger.error("Aborting: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Unexpected failure: %s", exc, exc_info=True)
        return 1

    if not outcome.ok:
        for store, cause in outcome.failed_stores.items():
            logger.error(
                "Store %s failed: %s", store, cause,
                extra={"tenant_store": store},
            )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
