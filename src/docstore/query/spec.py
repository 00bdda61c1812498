"""
Query specification – filter + sort + offset + limit for one read request.

    query = (
        Query.builder()
        .filter(Filter.eq("name", "Alice"))
        .sort("created_at", SortDirection.DESC)
        .offset(20)
        .limit(10)
        .build()
    )
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, Field

from .filters import Expr


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class Sort(BaseModel):
    model_config = {"frozen": True}

    field: str
    direction: SortDirection = SortDirection.ASC


class Query(BaseModel):
    """An empty Query returns every record of a collection, in backend order."""

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    filter: Optional[Expr] = None
    sort: Optional[Sort] = None
    offset: Optional[int] = Field(default=None, ge=0)
    limit: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def builder(cls) -> "QueryBuilder":
        return QueryBuilder()


class QueryBuilder:
    def __init__(self) -> None:
        self._fields: dict = {}

    def filter(self, expr: Expr) -> "QueryBuilder":
        self._fields["filter"] = expr
        return self

    def sort(
        self, field: str, direction: SortDirection = SortDirection.ASC
    ) -> "QueryBuilder":
        self._fields["sort"] = Sort(field=field, direction=direction)
        return self

    def offset(self, offset: int) -> "QueryBuilder":
        self._fields["offset"] = offset
        return self

    def limit(self, limit: int) -> "QueryBuilder":
        self._fields["limit"] = limit
        return self

    def build(self) -> Query:
        return Query(**self._fields)
