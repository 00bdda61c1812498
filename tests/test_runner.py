"""Applying migration paths against a store."""

from __future__ import annotations

import pytest

from docstore.errors import (
    DocumentNotFoundError,
    EmptyRevisionGraphError,
    MigrationStepError,
    NoMigrationPathError,
)
from docstore.migrations.registry import MigrationRegistry
from docstore.migrations.runner import MigrationDirection, MigrationRunner, MigrationStep


def recording_steps(calls, fail_on=None):
    def effect(step_id, direction):
        async def run(op):
            if (step_id, direction) == fail_on:
                raise RuntimeError("boom")
            calls.append((step_id, direction))

        return run

    return [
        MigrationStep(sid, prev, effect(sid, "up"), effect(sid, "down"))
        for sid, prev in (("A", None), ("B", "A"), ("C", "B"))
    ]


@pytest.mark.asyncio
async def test_upgrade_then_downgrade(store):
    calls = []
    steps = recording_steps(calls)

    assert await store.current_revision() is None
    assert await store.upgrade_to(steps, "C") == ["A", "B", "C"]
    assert calls == [("A", "up"), ("B", "up"), ("C", "up")]
    assert await store.current_revision() == "C"

    calls.clear()
    assert await store.downgrade_to(steps, "A") == ["C", "B", "A"]
    assert calls == [("C", "down"), ("B", "down"), ("A", "down")]
    assert await store.current_revision() == "A"


@pytest.mark.asyncio
async def test_upgrade_resumes_from_current_revision(store):
    calls = []
    await store.set_revision("B")
    await store.upgrade(recording_steps(calls))
    assert calls == [("B", "up"), ("C", "up")]


@pytest.mark.asyncio
async def test_failed_step_leaves_last_completed_revision(store):
    calls = []
    steps = recording_steps(calls, fail_on=("B", "up"))

    with pytest.raises(MigrationStepError) as info:
        await store.upgrade(steps)

    assert info.value.step_id == "B"
    assert isinstance(info.value.__cause__, RuntimeError)
    assert calls == [("A", "up")]
    assert await store.current_revision() == "A"


@pytest.mark.asyncio
async def test_store_errors_in_effects_are_wrapped(memory_store):
    migrations = MigrationRegistry()
    broken = migrations.step("0001")

    @broken.up
    async def delete_missing(op):
        await op.create_collection("users")
        await op.delete("users", ["00000000-0000-0000-0000-000000000001"])

    broken.down(lambda op: None)

    with pytest.raises(MigrationStepError) as info:
        await memory_store.upgrade(migrations)
    assert isinstance(info.value.__cause__, DocumentNotFoundError)
    assert await memory_store.current_revision() is None


@pytest.mark.asyncio
async def test_sync_effects_are_supported(memory_store):
    seen = []
    steps = [MigrationStep("only", None, lambda op: seen.append("up"), lambda op: seen.append("down"))]
    await memory_store.upgrade(steps)
    await memory_store.downgrade(steps)
    assert seen == ["up", "down"]


@pytest.mark.asyncio
async def test_effects_change_the_store(store):
    migrations = MigrationRegistry()
    users = migrations.step("0001_users")

    @users.up
    async def create_users(op):
        await op.create_collection("users")
        await op.insert("users", [("00000000-0000-0000-0000-000000000001", {"name": "Ann"})])

    @users.down
    async def drop_users(op):
        await op.drop_collection("users")

    age = migrations.step("0002_age", previous="0001_users")

    @age.up
    async def add_age(op):
        await op.add_field("users", "age", 0)
        await op.add_index("users", "age")

    @age.down
    async def drop_age(op):
        await op.drop_field("users", "age")
        await op.drop_index("users", "age")

    await store.upgrade(migrations)
    assert await store.collection("users").query() == [{"name": "Ann", "age": 0}]
    assert [ix.field for ix in await store.list_indexes("users")] == ["age"]

    assert await store.downgrade(migrations) == ["0002_age", "0001_users"]
    assert await store.list_collections() == []
    assert await store.current_revision() == "0001_users"


@pytest.mark.asyncio
async def test_missing_path_names_both_endpoints(memory_store):
    steps = recording_steps([])
    await memory_store.set_revision("C")
    with pytest.raises(NoMigrationPathError, match="'C' to 'A'"):
        await memory_store.upgrade_to(steps, "A")


@pytest.mark.asyncio
async def test_no_steps(memory_store):
    with pytest.raises(EmptyRevisionGraphError):
        await memory_store.upgrade([])


def test_resolve_uses_implicit_start():
    runner = MigrationRunner(recording_steps([]))
    up = runner.resolve(None, "B", MigrationDirection.UP)
    down = runner.resolve(None, "B", MigrationDirection.DOWN)
    assert [s.id for s in up] == ["A", "B"]
    assert [s.id for s in down] == ["C", "B"]
