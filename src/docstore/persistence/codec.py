"""
JSON-safe encoding of record values for the SQL backend.

Values without a JSON form are wrapped in single-key tagged objects:

    datetime  ➜ {"$date": "<iso-8601>"}
    UUID      ➜ {"$uuid": "<hex>"}
    bytes     ➜ {"$bytes": "<base64>"}

A user mapping whose only key starts with ``$`` is wrapped as ``{"$map": …}``
so it can never be mistaken for a tag.

The encoding is lossy for container and number types: tuples come back as
lists, and ``Decimal`` / ``Fraction`` come back as floats. A value read back
is equal to the stored one under `core.value.normalize`, not always under
Python ``==``.
"""

from __future__ import annotations

import base64
import datetime as dt
import numbers
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from ..errors import SerializationError

_DATE, _UUID, _BYTES, _MAP = "$date", "$uuid", "$bytes", "$map"


def encode(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (numbers.Real, Decimal)):
        return float(value)
    if isinstance(value, dt.datetime):
        return {_DATE: value.isoformat()}
    if isinstance(value, uuid.UUID):
        return {_UUID: value.hex}
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    if isinstance(value, Mapping):
        encoded = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(f"mapping key {key!r} is not a string")
            encoded[key] = encode(item)
        if len(encoded) == 1 and next(iter(encoded)).startswith("$"):
            return {_MAP: encoded}
        return encoded
    raise SerializationError(f"cannot store value of type {type(value).__name__}")


def decode(value: Any) -> Any:
    if isinstance(value, list):
        return [decode(item) for item in value]
    if not isinstance(value, dict):
        return value
    if len(value) == 1:
        (tag, payload), = value.items()
        try:
            if tag == _DATE:
                return dt.datetime.fromisoformat(payload)
            if tag == _UUID:
                return uuid.UUID(payload)
            if tag == _BYTES:
                return base64.b64decode(payload)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"corrupt {tag} value {payload!r}") from exc
        if tag == _MAP:
            return {key: decode(item) for key, item in payload.items()}
    return {key: decode(item) for key, item in value.items()}
