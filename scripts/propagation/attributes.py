"""Identity payload -> inventory attribute mapping."""

from __future__ import annotations

import json
from typing import Any, Mapping

from scripts.propagation.errors import EncodingError
from scripts.propagation.models import IDENTITY_SCOPE, Attribute


def encode_value(value: Any) -> str:
    """Canonical JSON text for one payload value."""
    return json.dumps(
        value,
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
    )


def id_data_to_attributes(id_data: Mapping[str, Any]) -> list[Attribute]:
    """Convert an identity payload into identity-scoped attributes, sorted by name.

    Raises EncodingError if any value cannot be encoded; no partial list is
    returned in that case.
    """
    out: list[Attribute] = []
    for name, value in id_data.items():
        try:
            encoded = encode_value(value)
        except (TypeError, ValueError) as exc:
            raise EncodingError(
                f"failed to encode attribute {name}, value: {value!r}: {exc}"
            ) from exc
        out.append(Attribute(name=name, scope=IDENTITY_SCOPE, value=encoded))

    out.sort(key=lambda a: a.name)
    return out
