"""AWS Lambda handler for inventory propagation.

Triggered manually or by an EventBridge rule after a deployment. The event
overrides the job section of the environment configuration.

Event format:
  {"mode": "statuses", "migration_version": "2.0.0"}
  {"mode": "inventory", "tenant": "acme", "dry_run": true}
  {"mode": "id-data"}
"""

from __future__ import annotations

import json
import logging
import os
import sys

# Ensure the project root is on sys.path for Lambda packaging
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from scripts.propagation.config import JobConfig, load_config
from scripts.propagation.errors import PropagationError
from scripts.propagation.logging_config import configure_logging
from scripts.propagation.runner import run_job

logger = logging.getLogger("propagation.lambda")


def handler(event: dict, context) -> dict:
    """Lambda entry point."""
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    mode = event.get("mode", "")
    if not mode:
        return {"statusCode": 400, "body": "Missing 'mode' in event"}

    logger.info("Lambda invoked for mode=%s", mode, extra={"mode": mode})

    try:
        config = load_config()
        job = JobConfig(
            mode=mode,
            tenant=event.get("tenant") or None,
            migration_version=event.get("migration_version") or None,
            dry_run=bool(event.get("dry_run", False)),
        )
        outcome = run_job(config, job)
    except ValueError as exc:
        return {"statusCode": 400, "body": json.dumps({"mode": mode, "error": str(exc)})}
    except PropagationError as exc:
        logger.error("Propagation aborted for %s: %s", mode, exc, exc_info=True)
        return {"statusCode": 500, "body": json.dumps({"mode": mode, "error": str(exc)})}
    except Exception as exc:
        logger.error("Unexpected failure for %s: %s", mode, exc, exc_info=True)
        return {"statusCode": 500, "body": json.dumps({"mode": mode, "error": str(exc)})}

    body = {
        "mode": mode,
        "dry_run": outcome.dry_run,
        "processed": outcome.processed,
        "failed_stores": outcome.failed_stores,
    }
    return {"statusCode": 200 if outcome.ok else 500, "body": json.dumps(body)}
