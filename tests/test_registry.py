"""Declaring steps with decorators."""

from __future__ import annotations

import pytest

from docstore.errors import MigrationError
from docstore.migrations.registry import MigrationRegistry
from docstore.migrations.runner import MigrationDirection


def test_steps_are_built_in_declaration_order():
    migrations = MigrationRegistry()
    first = migrations.step("0001")

    @first.up
    def create(op):
        pass

    @first.down
    def drop(op):
        pass

    second = migrations.step("0002", previous="0001")
    second.up(create)
    second.down(drop)

    steps = list(migrations)
    assert [s.id for s in steps] == ["0001", "0002"]
    assert steps[1].previous_id == "0001"
    assert steps[0].effect(MigrationDirection.UP) is create
    assert steps[0].effect(MigrationDirection.DOWN) is drop
    assert len(migrations) == 2


def test_duplicate_ids_are_rejected():
    migrations = MigrationRegistry()
    migrations.step("0001")
    with pytest.raises(MigrationError):
        migrations.step("0001")


def test_missing_effect_is_reported_on_build():
    migrations = MigrationRegistry()
    migrations.step("0001").up(lambda op: None)
    with pytest.raises(MigrationError, match="no down effect"):
        migrations.steps()
