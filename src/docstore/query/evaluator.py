"""
In-memory filter evaluation.

`DocumentEvaluator` walks one expression tree against one record and answers
match / no match. Field comparisons go through `core.value.normalize`, so
mixed numeric types compare equal and incomparable pairs never match an
ordering operator.

A record that is not a mapping is a structural error: it raises
`InvalidDocumentError` rather than quietly failing to match.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Tuple

from ..core.value import Comparable, normalize
from ..errors import InvalidDocumentError
from .filters import Expr, FieldOp, FilterVisitor

# operators that hold when the field is absent from the record
_TRUE_WHEN_MISSING = frozenset({FieldOp.NOT_CONTAINS, FieldOp.NONE_OF})


def as_record(value: Any) -> Mapping:
    if not isinstance(value, Mapping):
        raise InvalidDocumentError(
            f"expected a record mapping, got {type(value).__name__}"
        )
    return value


def _contains(left: Comparable, right: Comparable) -> bool:
    if left.is_array:
        return any(item == right for item in left.value)
    if left.is_string and right.is_string:
        return right.value in left.value
    return False


def _any_of(left: Comparable, right: Comparable) -> bool:
    if left.is_array and right.is_array:
        return any(item in left.value for item in right.value)
    if left.is_array:
        return right in left.value
    if right.is_array:
        return left in right.value
    return False


def _ordered(accept: Callable[[int], bool]) -> Callable[[Comparable, Comparable], bool]:
    def check(left: Comparable, right: Comparable) -> bool:
        ordering = left.compare(right)
        return ordering is not None and accept(ordering)

    return check


def _strings(check: Callable[[str, str], bool]) -> Callable[[Comparable, Comparable], bool]:
    def wrapped(left: Comparable, right: Comparable) -> bool:
        return left.is_string and right.is_string and check(left.value, right.value)

    return wrapped


_OPERATORS: Dict[FieldOp, Callable[[Comparable, Comparable], bool]] = {
    FieldOp.EQ: lambda left, right: left == right,
    FieldOp.NE: lambda left, right: left != right,
    FieldOp.GT: _ordered(lambda o: o > 0),
    FieldOp.GTE: _ordered(lambda o: o >= 0),
    FieldOp.LT: _ordered(lambda o: o < 0),
    FieldOp.LTE: _ordered(lambda o: o <= 0),
    FieldOp.CONTAINS: _contains,
    FieldOp.NOT_CONTAINS: lambda left, right: not _contains(left, right),
    FieldOp.STARTS_WITH: _strings(str.startswith),
    FieldOp.ENDS_WITH: _strings(str.endswith),
    FieldOp.ANY_OF: _any_of,
    FieldOp.NONE_OF: lambda left, right: not _any_of(left, right),
}


class DocumentEvaluator(FilterVisitor[bool]):
    def __init__(self, document: Any):
        self.document = document

    def _fields(self) -> Mapping:
        return as_record(self.document)

    def evaluate(self, expr: Expr) -> bool:
        self._fields()  # malformed records fail even against an empty And
        return self.visit(expr)

    def visit_and(self, exprs: Tuple[Expr, ...]) -> bool:
        for expr in exprs:
            if not self.visit(expr):
                return False
        return True

    def visit_or(self, exprs: Tuple[Expr, ...]) -> bool:
        for expr in exprs:
            if self.visit(expr):
                return True
        return False

    def visit_not(self, expr: Expr) -> bool:
        return not self.visit(expr)

    def visit_exists(self, field: str, should_exist: bool) -> bool:
        return (field in self._fields()) == should_exist

    def visit_field(self, field: str, op: FieldOp, value: Any) -> bool:
        fields = self._fields()
        if field not in fields:
            return op in _TRUE_WHEN_MISSING
        return _OPERATORS[op](normalize(fields[field]), normalize(value))


def evaluate(expr: Expr, record: Any) -> bool:
    """Return whether ``record`` matches ``expr``."""
    return DocumentEvaluator(record).evaluate(expr)


def filter_records(records: Iterable[Any], expr: Expr) -> List[Any]:
    """Matching records in input order; structural errors propagate."""
    return [record for record in records if evaluate(expr, record)]
