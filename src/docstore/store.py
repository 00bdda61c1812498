"""
DocumentStore – the facade applications hold.

It owns one backend and hands out collection views; schema-evolution and
migration entry points live here too.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Type, TypeVar

from .collection import Collection, TypedCollection
from .core.document import Document
from .errors import BackendError
from .migrations.runner import MigrationRunner, MigrationStep
from .persistence.backend import IndexSpec, StoreBackend

D = TypeVar("D", bound=Document)
B = TypeVar("B", bound=StoreBackend)


class DocumentStore:
    def __init__(self, backend: StoreBackend):
        self.backend = backend

    def __repr__(self) -> str:
        return f"DocumentStore({type(self.backend).__name__})"

    def collection(self, name: str) -> Collection:
        return Collection(name, self.backend)

    def typed_collection(self, document_cls: Type[D]) -> TypedCollection[D]:
        return TypedCollection(document_cls, self.backend)

    def backend_as(self, backend_cls: Type[B]) -> B:
        """The backend as ``backend_cls``; BackendError if it is something else."""
        if not isinstance(self.backend, backend_cls):
            raise BackendError(
                f"store backend is {type(self.backend).__name__}, not {backend_cls.__name__}"
            )
        return self.backend

    # ---- collections ------------------------------------------------------
    async def create_collection(self, name: str) -> None:
        await self.backend.create_collection(name)

    async def drop_collection(self, name: str) -> None:
        await self.backend.drop_collection(name)

    async def list_collections(self) -> List[str]:
        return await self.backend.list_collections()

    # ---- schema evolution -------------------------------------------------
    async def add_field(self, collection: str, field: str, default: Any) -> None:
        """Give ``field`` the value ``default`` on every record that lacks it."""
        await self.backend.add_field(collection, field, default)

    async def drop_field(self, collection: str, field: str) -> None:
        await self.backend.drop_field(collection, field)

    async def rename_field(self, collection: str, field: str, new: str) -> None:
        await self.backend.rename_field(collection, field, new)

    async def add_index(self, collection: str, field: str, unique: bool = False) -> None:
        """Register an index on ``field``. A unique index is not enforced on writes."""
        await self.backend.add_index(collection, field, unique)

    async def drop_index(self, collection: str, field: str) -> None:
        await self.backend.drop_index(collection, field)

    async def list_indexes(self, collection: str) -> List[IndexSpec]:
        return await self.backend.list_indexes(collection)

    # ---- revisions & migrations -------------------------------------------
    async def current_revision(self) -> Optional[str]:
        return await self.backend.current_revision()

    async def set_revision(self, revision_id: str) -> None:
        await self.backend.set_revision(revision_id)

    async def upgrade(self, steps: Iterable[MigrationStep]) -> List[str]:
        return await MigrationRunner(steps).upgrade(self)

    async def downgrade(self, steps: Iterable[MigrationStep]) -> List[str]:
        return await MigrationRunner(steps).downgrade(self)

    async def upgrade_to(self, steps: Iterable[MigrationStep], target: str) -> List[str]:
        return await MigrationRunner(steps).upgrade_to(self, target)

    async def downgrade_to(self, steps: Iterable[MigrationStep], target: str) -> List[str]:
        return await MigrationRunner(steps).downgrade_to(self, target)

    async def shutdown(self) -> None:
        await self.backend.shutdown()
