"""
Filter expressions – an immutable predicate tree over top-level record fields.

    from docstore.query.filters import Filter

    expr = Filter.eq("status", "active") & Filter.gte("age", 18)
    expr = expr | Filter.any_of("tags", ["admin", "staff"])

Nodes are frozen pydantic models. The tree is built bottom-up from existing
nodes, so it is always finite and acyclic.
"""

from __future__ import annotations

import abc
import enum
from typing import Any, Generic, Iterable, Tuple, TypeVar, Union

from pydantic import BaseModel

from ..errors import UnknownError

T = TypeVar("T")


class FieldOp(str, enum.Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    ANY_OF = "any_of"
    NONE_OF = "none_of"


class _Node(BaseModel):
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def and_(self, other: "Expr") -> "Expr":
        """Conjunction; extends ``self`` in place of nesting when it is an And."""
        if isinstance(self, And):
            return And(exprs=(*self.exprs, other))
        return And(exprs=(self, other))

    def or_(self, other: "Expr") -> "Expr":
        if isinstance(self, Or):
            return Or(exprs=(*self.exprs, other))
        return Or(exprs=(self, other))

    def not_(self) -> "Expr":
        return Not(expr=self)

    __and__ = and_
    __or__ = or_
    __invert__ = not_


class And(_Node):
    exprs: Tuple["Expr", ...] = ()


class Or(_Node):
    exprs: Tuple["Expr", ...] = ()


class Not(_Node):
    expr: "Expr"


class Exists(_Node):
    field: str
    should_exist: bool = True


class FieldCompare(_Node):
    field: str
    op: FieldOp
    value: Any = None


Expr = Union[And, Or, Not, Exists, FieldCompare]

for _model in (And, Or, Not, Exists, FieldCompare):
    _model.model_rebuild()


class Filter:
    """Factory for filter expressions."""

    @staticmethod
    def eq(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.EQ, value=value)

    @staticmethod
    def ne(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.NE, value=value)

    @staticmethod
    def gt(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.GT, value=value)

    @staticmethod
    def gte(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.GTE, value=value)

    @staticmethod
    def lt(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.LT, value=value)

    @staticmethod
    def lte(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.LTE, value=value)

    @staticmethod
    def starts_with(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.STARTS_WITH, value=value)

    @staticmethod
    def ends_with(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.ENDS_WITH, value=value)

    @staticmethod
    def contains(field: str, value: Any) -> Expr:
        """Array membership, or case-sensitive substring for strings."""
        return FieldCompare(field=field, op=FieldOp.CONTAINS, value=value)

    @staticmethod
    def not_contains(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.NOT_CONTAINS, value=value)

    @staticmethod
    def any_of(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.ANY_OF, value=value)

    @staticmethod
    def none_of(field: str, value: Any) -> Expr:
        return FieldCompare(field=field, op=FieldOp.NONE_OF, value=value)

    @staticmethod
    def exists(field: str) -> Expr:
        return Exists(field=field, should_exist=True)

    @staticmethod
    def not_exists(field: str) -> Expr:
        return Exists(field=field, should_exist=False)

    @staticmethod
    def and_(exprs: Iterable[Expr]) -> Expr:
        return And(exprs=tuple(exprs))

    @staticmethod
    def or_(exprs: Iterable[Expr]) -> Expr:
        return Or(exprs=tuple(exprs))

    @staticmethod
    def not_(expr: Expr) -> Expr:
        return Not(expr=expr)


class FilterVisitor(abc.ABC, Generic[T]):
    """Walks an expression tree; subclasses implement one method per node."""

    def visit(self, expr: Expr) -> T:
        if isinstance(expr, And):
            return self.visit_and(expr.exprs)
        if isinstance(expr, Or):
            return self.visit_or(expr.exprs)
        if isinstance(expr, Not):
            return self.visit_not(expr.expr)
        if isinstance(expr, Exists):
            return self.visit_exists(expr.field, expr.should_exist)
        if isinstance(expr, FieldCompare):
            return self.visit_field(expr.field, expr.op, expr.value)
        raise UnknownError(f"unsupported filter node {type(expr).__name__}")

    @abc.abstractmethod
    def visit_and(self, exprs: Tuple[Expr, ...]) -> T: ...

    @abc.abstractmethod
    def visit_or(self, exprs: Tuple[Expr, ...]) -> T: ...

    @abc.abstractmethod
    def visit_not(self, expr: Expr) -> T: ...

    @abc.abstractmethod
    def visit_exists(self, field: str, should_exist: bool) -> T: ...

    @abc.abstractmethod
    def visit_field(self, field: str, op: FieldOp, value: Any) -> T: ...
