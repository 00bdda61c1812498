"""
Query pipeline: filter ➜ sort ➜ offset ➜ limit over a full record set.
"""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Iterable, List

from ..core.value import NULL, Comparable, normalize
from .evaluator import as_record, filter_records
from .spec import Query, Sort, SortDirection


def _sort_key(sort: Sort):
    def field_value(record: Any) -> Comparable:
        fields = as_record(record)
        if sort.field not in fields:
            return NULL
        return normalize(fields[sort.field])

    sign = -1 if sort.direction is SortDirection.DESC else 1

    # ties and incomparable pairs compare equal, so the stable sort keeps
    # their filtered order in both directions
    def compare(left: Any, right: Any) -> int:
        ordering = field_value(left).compare(field_value(right))
        return 0 if ordering is None else sign * ordering

    return cmp_to_key(compare)


def sort_records(records: List[Any], sort: Sort) -> List[Any]:
    return sorted(records, key=_sort_key(sort))


def execute(query: Query, records: Iterable[Any]) -> List[Any]:
    """Run ``query`` over every record of one collection."""
    if query.filter is not None:
        results = filter_records(records, query.filter)
    else:
        results = list(records)

    if query.sort is not None:
        results = sort_records(results, query.sort)

    start = min(query.offset or 0, len(results))
    results = results[start:]
    if query.limit is not None:
        results = results[: query.limit]
    return results
