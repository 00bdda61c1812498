"""filter ➜ sort ➜ offset ➜ limit."""

from __future__ import annotations

from docstore.query.filters import Filter
from docstore.query.pipeline import execute
from docstore.query.spec import Query, Sort, SortDirection


def _values(records):
    return [r["value"] for r in records]


def test_offset_and_limit_after_sort():
    records = [{"value": n} for n in reversed(range(1, 101))]
    query = Query(sort=Sort(field="value"), offset=10, limit=10)
    assert _values(execute(query, records)) == list(range(11, 21))


def test_no_clauses_returns_everything():
    records = [{"value": n} for n in range(5)]
    assert execute(Query(), records) == records


def test_sort_is_stable_in_both_directions():
    records = [
        {"value": 1, "tag": "a"},
        {"value": 2, "tag": "b"},
        {"value": 1, "tag": "c"},
        {"value": 2, "tag": "d"},
    ]
    asc = execute(Query(sort=Sort(field="value")), records)
    assert [r["tag"] for r in asc] == ["a", "c", "b", "d"]
    desc = execute(Query(sort=Sort(field="value", direction=SortDirection.DESC)), records)
    assert [r["tag"] for r in desc] == ["b", "d", "a", "c"]


def test_incomparable_values_keep_filtered_order():
    records = [{"value": "x"}, {"value": [1]}, {}, {"value": {"a": 1}}]
    assert execute(Query(sort=Sort(field="value")), records) == records


def test_offset_past_the_end_is_empty():
    records = [{"value": n} for n in range(3)]
    assert execute(Query(offset=10), records) == []
    assert execute(Query(limit=0), records) == []


def test_filter_runs_before_offset():
    records = [{"value": n} for n in range(10)]
    query = Query(filter=Filter.gte("value", 5), offset=1, limit=2)
    assert _values(execute(query, records)) == [6, 7]
