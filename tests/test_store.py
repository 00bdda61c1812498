"""Record operations, run against every backend."""

from __future__ import annotations

import datetime as dt
import uuid

import pytest

from docstore import (
    BackendError,
    CollectionNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    DocumentStore,
    Filter,
    InMemoryStore,
    InvalidDocumentError,
    PaginationParams,
    Query,
    Sort,
    SqlStore,
)
from docstore.core.value import normalize


def ids(n):
    return [uuid.uuid4() for _ in range(n)]


@pytest.mark.asyncio
async def test_insert_then_get_round_trips(store):
    (doc_id,) = ids(1)
    value = {
        "name": "Alice",
        "age": 30,
        "score": 1.5,
        "active": True,
        "tags": ["a", "b"],
        "address": {"city": "Oslo", "zip": None},
        "joined": dt.datetime(2024, 1, 2, 3, 4, 5, tzinfo=dt.timezone.utc),
    }
    users = store.collection("users")
    await users.insert([(doc_id, value)])
    assert await users.get([doc_id]) == [value]
    assert await users.get([str(doc_id)]) == [value]


@pytest.mark.asyncio
async def test_insert_one_generates_an_id(store):
    users = store.collection("users")
    doc_id = await users.insert_one({"name": "Bob"})
    assert isinstance(doc_id, uuid.UUID)
    assert await users.get([doc_id]) == [{"name": "Bob"}]


@pytest.mark.asyncio
async def test_duplicate_insert_and_missing_update(store):
    (doc_id,) = ids(1)
    users = store.collection("users")
    await users.insert([(doc_id, {"n": 1})])

    with pytest.raises(DocumentAlreadyExistsError) as info:
        await users.insert([(doc_id, {"n": 2})])
    assert info.value.collection == "users"
    assert info.value.doc_id == str(doc_id)

    with pytest.raises(DocumentNotFoundError):
        await users.update([(uuid.uuid4(), {"n": 3})])


@pytest.mark.asyncio
async def test_update_replaces_the_value(store):
    (doc_id,) = ids(1)
    users = store.collection("users")
    await users.insert([(doc_id, {"n": 1, "old": True})])
    await users.update([(doc_id, {"n": 2})])
    assert await users.get([doc_id]) == [{"n": 2}]


@pytest.mark.asyncio
async def test_batches_stop_at_the_first_failure(store):
    first, second, third = ids(3)
    users = store.collection("users")
    await users.insert([(second, {"n": "original"})])

    with pytest.raises(DocumentAlreadyExistsError):
        await users.insert([(first, {"n": 1}), (second, {"n": 2}), (third, {"n": 3})])

    assert await users.get([first, second, third]) == [{"n": 1}, {"n": "original"}]


@pytest.mark.asyncio
async def test_delete(store):
    keep, drop = ids(2)
    users = store.collection("users")
    await users.insert([(keep, {"n": 1}), (drop, {"n": 2})])

    await users.delete([drop])
    assert await users.get([keep, drop]) == [{"n": 1}]

    with pytest.raises(DocumentNotFoundError):
        await users.delete([drop])
    with pytest.raises(CollectionNotFoundError):
        await store.collection("nobody").delete([keep])


@pytest.mark.asyncio
async def test_get_omits_missing_ids(store):
    (doc_id,) = ids(1)
    users = store.collection("users")
    await users.insert([(doc_id, {"n": 1})])
    assert await users.get([uuid.uuid4(), doc_id]) == [{"n": 1}]
    assert await store.collection("nobody").get([doc_id]) == []


@pytest.mark.asyncio
async def test_empty_query_returns_the_whole_collection(store):
    users = store.collection("users")
    values = [{"n": n} for n in range(5)]
    await users.insert(zip(ids(5), values))

    result = await users.query(Query())
    assert sorted(r["n"] for r in result) == [0, 1, 2, 3, 4]
    assert len(await users.query()) == 5


@pytest.mark.asyncio
async def test_query_filters_and_sorts(store):
    users = store.collection("users")
    await users.insert(
        zip(
            ids(4),
            [
                {"name": "Dee", "age": 41},
                {"name": "ann", "age": 17},
                {"name": "Bob", "age": 25},
                {"name": "Cat"},
            ],
        )
    )
    query = Query(filter=Filter.gte("age", 18), sort=Sort(field="name"))
    assert [r["name"] for r in await users.query(query)] == ["Bob", "Dee"]

    # case-sensitive on every backend
    assert await users.query(Query(filter=Filter.contains("name", "AN"))) == []


@pytest.mark.asyncio
async def test_query_page(store):
    users = store.collection("users")
    await users.insert(zip(ids(5), [{"n": n} for n in range(5, 0, -1)]))

    page = await users.query_page(
        PaginationParams(page=2, per_page=2), Query(sort=Sort(field="n"), limit=1)
    )
    assert [r["n"] for r in page.items] == [3, 4]
    assert page.count == 5
    assert (page.previous_page, page.next_page) == (1, 3)


@pytest.mark.asyncio
async def test_invalid_ids_are_rejected(store):
    with pytest.raises(InvalidDocumentError):
        await store.collection("users").get(["not-a-uuid"])


@pytest.mark.asyncio
async def test_invalid_id_fails_at_its_position_in_a_batch(store):
    first, last = ids(2)
    users = store.collection("users")

    with pytest.raises(InvalidDocumentError):
        await users.insert([(first, {"n": 1}), ("nope", {"n": 2}), (last, {"n": 3})])
    assert await users.get([first, last]) == [{"n": 1}]

    await users.insert([(last, {"n": 3})])
    with pytest.raises(InvalidDocumentError):
        await users.update([(first, {"n": 10}), (42, {"n": 0}), (last, {"n": 30})])
    assert await users.get([first, last]) == [{"n": 10}, {"n": 3}]

    with pytest.raises(InvalidDocumentError):
        await users.delete([first, "nope", last])
    assert await users.get([first, last]) == [{"n": 3}]


@pytest.mark.asyncio
async def test_queries_over_malformed_records_raise(store):
    users = store.collection("users")
    await users.insert([(uuid.uuid4(), {"n": 1}), (uuid.uuid4(), ["bad"])])

    with pytest.raises(InvalidDocumentError):
        await users.query(Query(filter=Filter.eq("n", 1)))
    with pytest.raises(InvalidDocumentError):
        await users.query(Query(sort=Sort(field="n")))
    assert len(await users.query()) == 2


@pytest.mark.asyncio
async def test_round_trip_is_equal_as_comparable_values(store):
    users = store.collection("users")
    value = {"pair": (1, 2), "tags": ("a",)}
    doc_id = await users.insert_one(value)
    (stored,) = await users.get([doc_id])
    assert normalize(stored) == normalize(value)
    assert await users.query(Query(filter=Filter.eq("pair", [1, 2]))) == [stored]


@pytest.mark.asyncio
async def test_collections(store):
    await store.create_collection("b")
    await store.create_collection("a")
    await store.create_collection("a")
    await store.collection("c").insert_one({"n": 1})
    assert await store.list_collections() == ["a", "b", "c"]

    await store.drop_collection("c")
    assert await store.list_collections() == ["a", "b"]
    assert await store.collection("c").query() == []
    with pytest.raises(CollectionNotFoundError):
        await store.drop_collection("c")
    with pytest.raises(CollectionNotFoundError):
        await store.collection("c").update([(uuid.uuid4(), {})])


@pytest.mark.asyncio
async def test_handles_share_state(store):
    other = DocumentStore(store.backend.handle())
    doc_id = await store.collection("users").insert_one({"n": 1})
    assert await other.collection("users").get([doc_id]) == [{"n": 1}]

    await other.set_revision("r1")
    assert await store.current_revision() == "r1"


@pytest.mark.asyncio
async def test_values_are_copied_in_and_out(memory_store):
    value = {"tags": ["a"]}
    users = memory_store.collection("users")
    doc_id = await users.insert_one(value)
    value["tags"].append("b")
    (stored,) = await users.get([doc_id])
    stored["tags"].append("c")
    assert await users.get([doc_id]) == [{"tags": ["a"]}]


def test_backend_as(memory_store, sql_store):
    assert isinstance(memory_store.backend_as(InMemoryStore), InMemoryStore)
    assert isinstance(sql_store.backend_as(SqlStore), SqlStore)
    with pytest.raises(BackendError):
        memory_store.backend_as(SqlStore)
