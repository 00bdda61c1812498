"""
Migration runner – applies a resolved revision path against a store.

Steps run strictly one after another. After each successful effect the
step's id is written as the store's current revision, so a failure part-way
leaves the pointer at the last completed step and a retry resumes from there.
Effects of the failing step itself are not rolled back.
"""

from __future__ import annotations

import enum
import inspect
import uuid
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Iterable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from ..errors import DocumentStoreError, MigrationStepError
from ..logging_config import get_logger
from ..persistence.backend import IndexSpec
from ..query.spec import Query
from .graph import RevisionGraph

if TYPE_CHECKING:  # for type-checkers
    from ..core.document import Document
    from ..store import DocumentStore

logger = get_logger(__name__)

D = TypeVar("D", bound="Document")
Effect = Callable[["OperationContext"], Union[None, Awaitable[None]]]


class MigrationDirection(str, enum.Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class MigrationStep:
    """One reversible schema change."""

    id: str
    previous_id: Optional[str]
    up: Effect
    down: Effect

    def effect(self, direction: MigrationDirection) -> Effect:
        return self.up if direction is MigrationDirection.UP else self.down


class OperationContext:
    """What a step's up/down effect may do to the store."""

    def __init__(self, store: "DocumentStore"):
        self._store = store

    # collections
    async def create_collection(self, name: str) -> None:
        await self._store.create_collection(name)

    async def drop_collection(self, name: str) -> None:
        await self._store.drop_collection(name)

    async def list_collections(self) -> List[str]:
        return await self._store.list_collections()

    # fields & indexes
    async def add_field(self, collection: str, field: str, default: Any) -> None:
        await self._store.add_field(collection, field, default)

    async def drop_field(self, collection: str, field: str) -> None:
        await self._store.drop_field(collection, field)

    async def rename_field(self, collection: str, field: str, new: str) -> None:
        await self._store.rename_field(collection, field, new)

    async def add_index(self, collection: str, field: str, unique: bool = False) -> None:
        await self._store.add_index(collection, field, unique)

    async def drop_index(self, collection: str, field: str) -> None:
        await self._store.drop_index(collection, field)

    async def list_indexes(self, collection: str) -> List[IndexSpec]:
        return await self._store.list_indexes(collection)

    # raw records
    async def insert(self, collection: str, documents: Iterable[Tuple[Any, Any]]) -> None:
        await self._store.collection(collection).insert(documents)

    async def update(self, collection: str, documents: Iterable[Tuple[Any, Any]]) -> None:
        await self._store.collection(collection).update(documents)

    async def delete(self, collection: str, ids: Iterable[Union[uuid.UUID, str]]) -> None:
        await self._store.collection(collection).delete(ids)

    async def get(self, collection: str, ids: Iterable[Union[uuid.UUID, str]]) -> List[Any]:
        return await self._store.collection(collection).get(ids)

    async def query(self, collection: str, query: Optional[Query] = None) -> List[Any]:
        return await self._store.collection(collection).query(query)

    # typed records
    async def insert_typed(self, documents: List[D]) -> None:
        if documents:
            await self._store.typed_collection(type(documents[0])).insert(documents)

    async def update_typed(self, documents: List[D]) -> None:
        if documents:
            await self._store.typed_collection(type(documents[0])).update(documents)

    async def delete_typed(
        self, document_cls: Type[D], ids: Iterable[Union[uuid.UUID, str]]
    ) -> None:
        await self._store.typed_collection(document_cls).delete(ids)

    async def get_typed(
        self, document_cls: Type[D], ids: Iterable[Union[uuid.UUID, str]]
    ) -> List[D]:
        return await self._store.typed_collection(document_cls).get(ids)

    async def query_typed(self, document_cls: Type[D], query: Optional[Query] = None) -> List[D]:
        return await self._store.typed_collection(document_cls).query(query)


class MigrationRunner:
    def __init__(self, steps: Iterable[MigrationStep]):
        self.graph = RevisionGraph(steps)

    async def upgrade(self, store: "DocumentStore") -> List[str]:
        """Migrate up to the single head revision."""
        return await self.apply(store, self.graph.head(), MigrationDirection.UP)

    async def downgrade(self, store: "DocumentStore") -> List[str]:
        """Migrate down to the single tail revision."""
        return await self.apply(store, self.graph.tail(), MigrationDirection.DOWN)

    async def upgrade_to(self, store: "DocumentStore", target: str) -> List[str]:
        return await self.apply(store, target, MigrationDirection.UP)

    async def downgrade_to(self, store: "DocumentStore", target: str) -> List[str]:
        return await self.apply(store, target, MigrationDirection.DOWN)

    def resolve(
        self, current: Optional[str], target: str, direction: MigrationDirection
    ) -> List[MigrationStep]:
        """Path from ``current`` (or the implicit start) to ``target``."""
        if direction is MigrationDirection.UP:
            start = current if current is not None else self.graph.tail()
            return self.graph.upgrade_path(start, target)
        start = current if current is not None else self.graph.head()
        return self.graph.downgrade_path(start, target)

    async def apply(
        self,
        store: "DocumentStore",
        target: str,
        direction: MigrationDirection,
    ) -> List[str]:
        """Run every step on the path to ``target``; return the ids applied."""
        direction = MigrationDirection(direction)
        current = await store.current_revision()
        path = self.resolve(current, target, direction)
        logger.info(
            "migration_path_resolved",
            direction=direction.value,
            current=current,
            target=target,
            steps=[step.id for step in path],
        )

        op = OperationContext(store)
        applied: List[str] = []
        for step in path:
            try:
                result = step.effect(direction)(op)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                detail = str(exc) if isinstance(exc, DocumentStoreError) else repr(exc)
                logger.error(
                    "migration_step_failed", step=step.id, direction=direction.value, error=detail
                )
                raise MigrationStepError(step.id, direction.value, detail) from exc

            await store.set_revision(step.id)
            applied.append(step.id)
            logger.info("migration_step_applied", step=step.id, direction=direction.value)
        return applied
