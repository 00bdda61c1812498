"""
Comparable values – the normalised form used for equality and ordering.

Stored values are untyped Python objects. Before two of them are compared
they are folded into a small closed set of variants:

* null, boolean, number, timestamp, string, array, map

Numbers of every stored width collapse into a single float, so ``1 == 1.0``
and very large integers lose precision. Values with no variant (bytes, UUIDs,
dates, sets, arbitrary objects) become null: they equal each other and a
literal ``None``, and are never ordered.
"""

from __future__ import annotations

import datetime as dt
import enum
import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any


class ValueKind(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    TIMESTAMP = "timestamp"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"


_ORDERED = frozenset(
    {ValueKind.BOOL, ValueKind.NUMBER, ValueKind.TIMESTAMP, ValueKind.STRING}
)


@dataclass(frozen=True, eq=False)
class Comparable:
    """One normalised value. Equality is variant-wise; ordering is partial."""

    kind: ValueKind
    value: Any = None

    __hash__ = None  # type: ignore[assignment]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Comparable):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def compare(self, other: "Comparable") -> int | None:
        """Return -1/0/1, or None when the pair has no defined order."""
        if self.kind is not other.kind or self.kind not in _ORDERED:
            return None
        if self.value < other.value:
            return -1
        if self.value > other.value:
            return 1
        if self.value == other.value:
            return 0
        return None  # NaN

    @property
    def is_array(self) -> bool:
        return self.kind is ValueKind.ARRAY

    @property
    def is_string(self) -> bool:
        return self.kind is ValueKind.STRING


NULL = Comparable(ValueKind.NULL)


def _to_float(value: numbers.Real | Decimal) -> float:
    try:
        return float(value)
    except OverflowError:  # int too large for a double
        return math.inf if value > 0 else -math.inf


def _to_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def normalize(value: Any) -> Comparable:
    """Fold a stored value into its comparable variant."""
    if value is None:
        return NULL
    if isinstance(value, bool):  # before numbers: bool is an int subclass
        return Comparable(ValueKind.BOOL, value)
    if isinstance(value, (numbers.Real, Decimal)):
        return Comparable(ValueKind.NUMBER, _to_float(value))
    if isinstance(value, dt.datetime):
        return Comparable(ValueKind.TIMESTAMP, _to_utc(value))
    if isinstance(value, str):
        return Comparable(ValueKind.STRING, value)
    if isinstance(value, (list, tuple)):
        return Comparable(ValueKind.ARRAY, tuple(normalize(item) for item in value))
    if isinstance(value, Mapping) and all(isinstance(k, str) for k in value):
        return Comparable(
            ValueKind.MAP, {key: normalize(item) for key, item in value.items()}
        )
    return NULL
