"""Error taxonomy for inventory propagation."""

from __future__ import annotations


class PropagationError(Exception):
    """Base class for every failure raised by the propagation engine."""


class StoreUnavailable(PropagationError):
    """The record store could not be read or written."""


class EncodingError(PropagationError):
    """A record's identity payload could not be turned into attributes."""


class SinkError(PropagationError):
    """The inventory sink refused or failed a call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SinkUnavailable(SinkError):
    """Transport failure or server-side error from the inventory sink."""


class SinkRejected(SinkError):
    """The inventory sink answered, but rejected the request."""


class InvalidVersion(PropagationError):
    """A checkpoint version label is not MAJOR.MINOR.PATCH."""


class PropagationFailed(PropagationError):
    """At least one tenant store pass finished with failures."""

    def __init__(self, failed_stores: dict[str, str]) -> None:
        names = ", ".join(failed_stores)
        super().__init__(f"propagation failed for {len(failed_stores)} store(s): {names}")
        self.failed_stores = failed_stores
