"""Logging setup for propagation jobs.

Jobs log JSON lines to stderr so the platform's log router can index the
structured fields below. ``LOG_FORMAT=text`` switches to a human-readable
format for local runs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

# Structured fields the observer attaches via ``extra=``.
EXTRA_FIELDS = (
    "tenant_store",
    "tenant",
    "mode",
    "status",
    "record_id",
    "records",
    "failures",
    "version",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key))
            for key in EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "json") -> logging.Logger:
    """Install a single stderr handler on the ``propagation`` logger tree."""
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger("propagation")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)
    root.propagate = False
    return root
