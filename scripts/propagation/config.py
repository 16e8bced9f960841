"""Configuration via environment variables with cloud-native secret support.

Supports:
  - Environment variables (local dev, .env files)
  - AWS Secrets Manager (aws-secret://name#key)
  - GCP Secret Manager (gcp-secret://name)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from scripts.propagation.paginator import DEVICES_BATCH_SIZE, INVENTORY_PAGE_SIZE
from scripts.propagation.secrets import resolve_database_url, resolve_secret
from scripts.propagation.tenants import DEFAULT_STORE

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class DatabaseConfig:
    url: str
    min_connections: int = 1
    max_connections: int = 4


@dataclass(frozen=True)
class InventoryConfig:
    addr: str
    timeout_s: float = 10.0
    token: Optional[str] = None


@dataclass(frozen=True)
class JobConfig:
    """What a single job invocation should do."""

    mode: str = "statuses"
    tenant: Optional[str] = None
    migration_version: Optional[str] = None
    dry_run: bool = False


@dataclass(frozen=True)
class PropagationConfig:
    database: DatabaseConfig
    inventory: InventoryConfig
    job: JobConfig = field(default_factory=JobConfig)
    default_store: str = DEFAULT_STORE
    inventory_page_size: int = INVENTORY_PAGE_SIZE
    batch_size: int = DEVICES_BATCH_SIZE


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_config() -> PropagationConfig:
    """Load configuration from the environment.

    INVENTORY_ADDR is required. Database settings fall back to PG_* variables
    when DATABASE_URL is unset.
    """
    load_dotenv()

    inventory_addr = os.environ.get("INVENTORY_ADDR", "")
    if not inventory_addr:
        raise ValueError("INVENTORY_ADDR environment variable is required")

    database = DatabaseConfig(
        url=resolve_database_url(),
        min_connections=_env_int("DB_MIN_CONNECTIONS", 1),
        max_connections=_env_int("DB_MAX_CONNECTIONS", 4),
    )

    token_raw = os.environ.get("INVENTORY_TOKEN", "")
    inventory = InventoryConfig(
        addr=inventory_addr,
        timeout_s=float(os.environ.get("INVENTORY_TIMEOUT_S", "10")),
        token=resolve_secret(token_raw) if token_raw else None,
    )

    job = JobConfig(
        mode=os.environ.get("PROPAGATION_MODE", "statuses"),
        tenant=os.environ.get("PROPAGATION_TENANT") or None,
        migration_version=os.environ.get("PROPAGATION_MIGRATION_VERSION") or None,
        dry_run=_env_bool("PROPAGATION_DRY_RUN"),
    )

    return PropagationConfig(
        database=database,
        inventory=inventory,
        job=job,
        default_store=os.environ.get("PROPAGATION_DEFAULT_STORE", DEFAULT_STORE),
        inventory_page_size=_env_int("PROPAGATION_INVENTORY_PAGE_SIZE", INVENTORY_PAGE_SIZE),
        batch_size=_env_int("PROPAGATION_BATCH_SIZE", DEVICES_BATCH_SIZE),
    )
