"""Records, attributes, checkpoint versions and run outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from scripts.propagation.errors import InvalidVersion, PropagationFailed

IDENTITY_SCOPE = "identity"


class RecordStatus(str, Enum):
    ACCEPTED = "accepted"
    PENDING = "pending"
    REJECTED = "rejected"
    PREAUTHORIZED = "preauthorized"


# Order in which status propagation sweeps a tenant store.
STATUS_SWEEP_ORDER: tuple[RecordStatus, ...] = (
    RecordStatus.ACCEPTED,
    RecordStatus.PENDING,
    RecordStatus.REJECTED,
    RecordStatus.PREAUTHORIZED,
)


@dataclass(frozen=True)
class Record:
    id: str
    status: RecordStatus
    id_data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Raises ValueError for a status outside the lifecycle.
        object.__setattr__(self, "status", RecordStatus(self.status))


@dataclass(frozen=True)
class RecordFilter:
    status: Optional[RecordStatus] = None


@dataclass(frozen=True)
class Attribute:
    name: str
    scope: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "scope": self.scope, "value": self.value}


_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


@dataclass(frozen=True, order=True)
class MigrationVersion:
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, label: str) -> "MigrationVersion":
        """Parse a "MAJOR.MINOR.PATCH" label, raising InvalidVersion otherwise."""
        match = _VERSION_RE.match(label.strip())
        if not match:
            raise InvalidVersion(f"invalid migration version: {label!r}")
        return cls(*(int(part) for part in match.groups()))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass
class StorePassResult:
    """What happened to one tenant store during a run."""

    tenant_store: str
    tenant: str
    processed: int = 0
    failures: int = 0
    cause: Optional[str] = None
    checkpoint_written: bool = False

    @property
    def ok(self) -> bool:
        return self.failures == 0

    def fail(self, exc: BaseException) -> None:
        self.failures += 1
        # First cause wins; later ones only go to the observer.
        if self.cause is None:
            self.cause = f"{type(exc).__name__}: {exc}"


@dataclass
class PropagationOutcome:
    results: list[StorePassResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failed_stores(self) -> dict[str, str]:
        return {
            r.tenant_store: r.cause or "unknown failure"
            for r in self.results
            if not r.ok
        }

    @property
    def processed(self) -> int:
        return sum(r.processed for r in self.results)

    @property
    def error(self) -> Optional[PropagationFailed]:
        failed = self.failed_stores
        return PropagationFailed(failed) if failed else None

    def raise_for_failures(self) -> None:
        err = self.error
        if err is not None:
            raise err
