"""Tenant store naming and selection."""

from __future__ import annotations

import logging
from typing import Optional

from scripts.propagation.interfaces import RecordStore

logger = logging.getLogger("propagation.tenants")

DEFAULT_STORE = "deviceauth"


def store_name_for_tenant(tenant: str, default_store: str = DEFAULT_STORE) -> str:
    """deviceauth + "acme" -> "deviceauth-acme"; no tenant -> the default store."""
    if not tenant:
        return default_store
    return f"{default_store}-{tenant}"


def tenant_from_store_name(tenant_store: str, default_store: str = DEFAULT_STORE) -> str:
    """Inverse of store_name_for_tenant. The default store has no tenant."""
    prefix = f"{default_store}-"
    if tenant_store.startswith(prefix):
        return tenant_store[len(prefix):]
    return ""


def select_tenant_stores(
    store: RecordStore,
    tenant: Optional[str] = None,
    default_store: str = DEFAULT_STORE,
) -> list[str]:
    """Resolve which tenant stores a run should visit.

    StoreUnavailable from discovery is not caught: the run must abort before
    touching any data.
    """
    if tenant:
        logger.info("Propagating inventory for user-specified tenant %s", tenant)
        return [store_name_for_tenant(tenant, default_store)]

    logger.info("Propagating inventory for all tenants")
    stores = store.list_tenant_stores()
    if not stores:
        logger.info(
            "No tenant stores found - will try the default store %s", default_store
        )
        return [default_store]
    return list(stores)
