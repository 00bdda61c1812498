"""
Decorator-based declaration of migration steps.

    migrations = MigrationRegistry()

    users = migrations.step("0001_users")

    @users.up
    async def create_users(op):
        await op.create_collection("users")

    @users.down
    async def drop_users(op):
        await op.drop_collection("users")

    add_age = migrations.step("0002_add_age", previous="0001_users")
    ...

    await store.upgrade(migrations)
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from ..errors import MigrationError
from .runner import Effect, MigrationStep


class StepBuilder:
    """Collects the up/down effects of one step."""

    def __init__(self, step_id: str, previous_id: Optional[str]):
        self.id = step_id
        self.previous_id = previous_id
        self._up: Optional[Effect] = None
        self._down: Optional[Effect] = None

    def up(self, func: Effect) -> Effect:
        self._up = func
        return func

    def down(self, func: Effect) -> Effect:
        self._down = func
        return func

    def build(self) -> MigrationStep:
        missing = [name for name, fn in (("up", self._up), ("down", self._down)) if fn is None]
        if missing:
            raise MigrationError(f"revision '{self.id}' has no {' or '.join(missing)} effect")
        return MigrationStep(self.id, self.previous_id, self._up, self._down)


class MigrationRegistry:
    """Ordered set of declared steps; iterating yields `MigrationStep`s."""

    def __init__(self) -> None:
        self._builders: Dict[str, StepBuilder] = {}

    def step(self, step_id: str, previous: Optional[str] = None) -> StepBuilder:
        if step_id in self._builders:
            raise MigrationError(f"duplicate revision id '{step_id}'")
        builder = StepBuilder(step_id, previous)
        self._builders[step_id] = builder
        return builder

    def steps(self) -> List[MigrationStep]:
        return [builder.build() for builder in self._builders.values()]

    def __iter__(self) -> Iterator[MigrationStep]:
        return iter(self.steps())

    def __len__(self) -> int:
        return len(self._builders)
