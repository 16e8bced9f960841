"""Abstract collaborators consumed by the propagation engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from scripts.propagation.models import Attribute, MigrationVersion, Record, RecordFilter


class RecordStore(ABC):
    """Paginated, per-tenant read access to device records plus checkpoints.

    Implementations raise StoreUnavailable for any backend failure.
    """

    @abstractmethod
    def list_tenant_stores(self) -> list[str]:
        """Return the known tenant store names, empty when not partitioned."""

    @abstractmethod
    def get_page(
        self,
        tenant_store: str,
        offset: int,
        limit: int,
        record_filter: Optional[RecordFilter] = None,
    ) -> list[Record]:
        """Return at most ``limit`` records starting at ``offset``, in a stable order."""

    @abstractmethod
    def write_checkpoint(self, tenant_store: str, version: MigrationVersion) -> None:
        """Persist ``version`` as applied to ``tenant_store``."""


class AttributeSink(ABC):
    """Idempotent remote upserts into the inventory service.

    Implementations raise SinkUnavailable or SinkRejected.
    """

    @abstractmethod
    def upsert_attributes(
        self,
        record_id: str,
        tenant: str,
        source: str,
        timestamp_ms: int,
        attributes: Sequence[Attribute],
    ) -> None:
        ...

    @abstractmethod
    def set_status(self, tenant: str, record_ids: Sequence[str], status: str) -> None:
        ...

    @abstractmethod
    def set_identity(
        self,
        tenant: str,
        record_id: str,
        attributes: Sequence[Attribute],
    ) -> None:
        ...
