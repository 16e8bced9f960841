"""Inventory service client implementing the attribute sink."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import requests

from scripts.propagation.config import InventoryConfig
from scripts.propagation.errors import SinkRejected, SinkUnavailable
from scripts.propagation.interfaces import AttributeSink
from scripts.propagation.models import Attribute

logger = logging.getLogger("propagation.inventory")

URL_PATCH_DEVICE = "/api/internal/v1/inventory/devices/{device_id}"
URL_SET_STATUS = "/api/internal/v1/inventory/tenants/{tenant}/devices/status/{status}"
URL_SET_IDENTITY = (
    "/api/internal/v1/inventory/tenants/{tenant}/device/{device_id}/attribute/scope/identity"
)

HEADER_SOURCE = "X-MEN-Source"
HEADER_TIMESTAMP = "X-MEN-Msg-Timestamp"


class InventoryClient(AttributeSink):
    """No retries: every call is one round trip, failures go straight up."""

    def __init__(
        self,
        config: InventoryConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base = config.addr.rstrip("/")
        self._timeout = config.timeout_s
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        if config.token:
            self._session.headers["Authorization"] = f"Bearer {config.token}"

    def _url(self, template: str, **parts: str) -> str:
        return self._base + template.format(
            **{k: quote(v, safe="") for k, v in parts.items()}
        )

    def _call(self, method: str, url: str, what: str, **kwargs: Any) -> None:
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, timeout=self._timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise SinkUnavailable(f"{what}: {exc}") from exc
        except requests.RequestException as exc:
            raise SinkRejected(f"{what}: {exc}") from exc

        status = resp.status_code
        if 200 <= status < 300:
            return
        message = f"{what}: unexpected status {status}: {resp.text[:200]}"
        if status >= 500:
            raise SinkUnavailable(message, status_code=status)
        raise SinkRejected(message, status_code=status)

    def upsert_attributes(
        self,
        record_id: str,
        tenant: str,
        source: str,
        timestamp_ms: int,
        attributes: Sequence[Attribute],
    ) -> None:
        params = {"tenant_id": tenant} if tenant else None
        self._call(
            "PATCH",
            self._url(URL_PATCH_DEVICE, device_id=record_id),
            f"patch device {record_id}",
            params=params,
            headers={HEADER_SOURCE: source, HEADER_TIMESTAMP: str(timestamp_ms)},
            json=[a.to_dict() for a in attributes],
        )

    def set_status(self, tenant: str, record_ids: Sequence[str], status: str) -> None:
        self._call(
            "POST",
            self._url(URL_SET_STATUS, tenant=tenant, status=status),
            f"set status={status} on {len(record_ids)} devices",
            json=[{"id": rid} for rid in record_ids],
        )

    def set_identity(
        self,
        tenant: str,
        record_id: str,
        attributes: Sequence[Attribute],
    ) -> None:
        body = [{"name": a.name, "value": a.value} for a in attributes]
        self._call(
            "PATCH",
            self._url(URL_SET_IDENTITY, tenant=tenant, device_id=record_id),
            f"set identity of device {record_id}",
            json=body,
        )
