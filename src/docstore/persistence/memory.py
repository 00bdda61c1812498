"""
In-process backend: every collection lives in a dict guarded by one
reader/writer lock.

`InMemoryStore.handle()` returns another handle onto the same state, so
several callers can share one store without any module-level globals.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableMapping, Optional, Sequence

from ..errors import (
    CollectionNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    InvalidDocumentError,
)
from ..logging_config import get_logger
from ..query.pipeline import execute
from ..query.spec import Query
from .backend import DocumentEntry, DocumentId, IndexSpec, StoreBackend, coerce_id
from .locking import ReadWriteLock

logger = get_logger(__name__)

CollectionMap = Dict[uuid.UUID, Any]


@dataclass
class _StoreState:
    collections: Dict[str, CollectionMap] = field(default_factory=dict)
    indexes: Dict[str, Dict[str, IndexSpec]] = field(default_factory=dict)
    revision: Optional[str] = None
    lock: ReadWriteLock = field(default_factory=ReadWriteLock)


class InMemoryStore(StoreBackend):
    def __init__(self, state: Optional[_StoreState] = None):
        self._state = state if state is not None else _StoreState()

    def handle(self) -> "InMemoryStore":
        """Independent handle sharing this store's data and lock."""
        return InMemoryStore(self._state)

    def _collection(self, name: str) -> CollectionMap:
        try:
            return self._state.collections[name]
        except KeyError:
            raise CollectionNotFoundError(name) from None

    @staticmethod
    def _records(name: str, records: CollectionMap) -> List[MutableMapping]:
        """All records as mutable mappings, or InvalidDocumentError before any change."""
        for doc_id, value in records.items():
            if not isinstance(value, MutableMapping):
                raise InvalidDocumentError(
                    f"record {doc_id} in collection {name} is {type(value).__name__}"
                )
        return list(records.values())

    # ---- records ----------------------------------------------------------
    async def insert_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        async with self._state.lock.write():
            records = self._state.collections.setdefault(collection, {})
            for raw_id, value in documents:
                doc_id = coerce_id(raw_id)
                if doc_id in records:
                    logger.warning(
                        "batch_aborted", op="insert", collection=collection, id=str(doc_id)
                    )
                    raise DocumentAlreadyExistsError(doc_id, collection)
                records[doc_id] = copy.deepcopy(value)

    async def update_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        async with self._state.lock.write():
            records = self._collection(collection)
            for raw_id, value in documents:
                doc_id = coerce_id(raw_id)
                if doc_id not in records:
                    logger.warning(
                        "batch_aborted", op="update", collection=collection, id=str(doc_id)
                    )
                    raise DocumentNotFoundError(doc_id, collection)
                records[doc_id] = copy.deepcopy(value)

    async def delete_documents(
        self, collection: str, ids: Sequence[DocumentId]
    ) -> None:
        async with self._state.lock.write():
            records = self._collection(collection)
            for raw_id in ids:
                doc_id = coerce_id(raw_id)
                if doc_id not in records:
                    logger.warning(
                        "batch_aborted", op="delete", collection=collection, id=str(doc_id)
                    )
                    raise DocumentNotFoundError(doc_id, collection)
                del records[doc_id]

    async def get_documents(
        self, collection: str, ids: Sequence[uuid.UUID]
    ) -> List[Any]:
        async with self._state.lock.read():
            records = self._state.collections.get(collection, {})
            return [copy.deepcopy(records[i]) for i in ids if i in records]

    async def query_documents(self, collection: str, query: Query) -> List[Any]:
        async with self._state.lock.read():
            records = self._state.collections.get(collection, {})
            return copy.deepcopy(execute(query, records.values()))

    # ---- revision pointer -------------------------------------------------
    async def current_revision(self) -> Optional[str]:
        async with self._state.lock.read():
            return self._state.revision

    async def set_revision(self, revision_id: str) -> None:
        async with self._state.lock.write():
            self._state.revision = revision_id
        logger.debug("revision_persisted", revision=revision_id)

    # ---- collections ------------------------------------------------------
    async def create_collection(self, name: str) -> None:
        async with self._state.lock.write():
            self._state.collections.setdefault(name, {})

    async def drop_collection(self, name: str) -> None:
        async with self._state.lock.write():
            if self._state.collections.pop(name, None) is None:
                raise CollectionNotFoundError(name)
            self._state.indexes.pop(name, None)
        logger.info("collection_dropped", collection=name)

    async def list_collections(self) -> List[str]:
        async with self._state.lock.read():
            return sorted(self._state.collections)

    # ---- schema evolution -------------------------------------------------
    async def add_field(self, collection: str, field: str, default: Any) -> None:
        async with self._state.lock.write():
            for record in self._records(collection, self._collection(collection)):
                if field not in record:
                    record[field] = copy.deepcopy(default)

    async def drop_field(self, collection: str, field: str) -> None:
        async with self._state.lock.write():
            for record in self._records(collection, self._collection(collection)):
                record.pop(field, None)

    async def rename_field(self, collection: str, field: str, new: str) -> None:
        async with self._state.lock.write():
            for record in self._records(collection, self._collection(collection)):
                if field in record:
                    record[new] = record.pop(field)

    async def add_index(self, collection: str, field: str, unique: bool = False) -> None:
        async with self._state.lock.write():
            self._collection(collection)
            self._state.indexes.setdefault(collection, {})[field] = IndexSpec(
                field, unique
            )

    async def drop_index(self, collection: str, field: str) -> None:
        async with self._state.lock.write():
            self._collection(collection)
            self._state.indexes.get(collection, {}).pop(field, None)

    async def list_indexes(self, collection: str) -> List[IndexSpec]:
        async with self._state.lock.read():
            self._collection(collection)
            specs = self._state.indexes.get(collection, {}).values()
            return sorted(specs, key=lambda spec: spec.field)
