"""
SQLAlchemy-backed backend.

Documents are rows of the ``documents`` table holding the codec-encoded value
in a JSON column. Queries load the collection and run the in-memory pipeline,
so filter and sort behave exactly as they do for `InMemoryStore`.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import (
    BackendError,
    CollectionNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidDocumentError,
)
from ..logging_config import get_logger
from ..query.pipeline import execute
from ..query.spec import Query
from .backend import DocumentEntry, DocumentId, IndexSpec, StoreBackend, coerce_id
from .codec import decode, encode
from .locking import ReadWriteLock
from .models import (
    REVISION_ROW_ID,
    Base,
    CollectionRow,
    DocumentRow,
    IndexRow,
    RevisionRow,
    now_utc,
)

logger = get_logger(__name__)


class SqlStore(StoreBackend):
    """Thin data‑access layer around the document tables."""

    def __init__(self, engine: Engine, lock: Optional[ReadWriteLock] = None):
        self.engine = engine
        self._lock = lock if lock is not None else ReadWriteLock()
        try:
            Base.metadata.create_all(engine)  # ← this line creates tables
        except SQLAlchemyError as exc:
            raise BackendError(str(exc)) from exc

    def handle(self) -> "SqlStore":
        """Independent handle sharing this store's engine and lock."""
        return SqlStore(self.engine, self._lock)

    def _new_session(self) -> Session:
        return Session(bind=self.engine, future=True)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session whose driver errors surface as BackendError."""
        try:
            with self._new_session() as s:
                yield s
        except SQLAlchemyError as exc:
            raise BackendError(str(exc)) from exc

    # ---- helpers ----------------------------------------------------------
    @staticmethod
    def _require_collection(s: Session, name: str) -> None:
        if s.get(CollectionRow, name) is None:
            raise CollectionNotFoundError(name)

    @staticmethod
    def _row(s: Session, collection: str, doc_id: uuid.UUID) -> Optional[DocumentRow]:
        q = select(DocumentRow).where(
            DocumentRow.collection == collection, DocumentRow.id == doc_id
        )
        return s.execute(q).scalar_one_or_none()

    @staticmethod
    def _rows(s: Session, collection: str) -> List[DocumentRow]:
        q = (
            select(DocumentRow)
            .where(DocumentRow.collection == collection)
            .order_by(DocumentRow.seq)
        )
        return list(s.execute(q).scalars())

    @staticmethod
    def _apply_batch(s: Session, entries: Sequence[Any], apply_one: Callable[[Any], None]) -> None:
        """Apply entries in order; on failure keep the ones already applied."""
        try:
            for entry in entries:
                apply_one(entry)
                s.flush()
        except DocumentStoreError:
            s.commit()
            raise
        s.commit()

    def _rewrite(
        self, collection: str, change: Callable[[dict], Optional[dict]]
    ) -> None:
        """Run ``change`` on every record; a None result leaves the row alone."""
        with self._session() as s:
            self._require_collection(s, collection)
            rows = self._rows(s, collection)
            values = [decode(row.data) for row in rows]
            for row, value in zip(rows, values):
                if not isinstance(value, Mapping):
                    raise InvalidDocumentError(
                        f"record {row.id} in collection {collection} is {type(value).__name__}"
                    )
            for row, value in zip(rows, values):
                changed = change(dict(value))
                if changed is not None:
                    row.data = encode(changed)
                    row.updated_ts = now_utc()
            s.commit()

    # ---- records ----------------------------------------------------------
    async def insert_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        async with self._lock.write():
            with self._session() as s:
                if s.get(CollectionRow, collection) is None:
                    s.add(CollectionRow(name=collection))

                def insert_one(entry: DocumentEntry) -> None:
                    raw_id, value = entry
                    doc_id = coerce_id(raw_id)
                    if self._row(s, collection, doc_id) is not None:
                        logger.warning(
                            "batch_aborted", op="insert", collection=collection, id=str(doc_id)
                        )
                        raise DocumentAlreadyExistsError(doc_id, collection)
                    s.add(DocumentRow(collection=collection, id=doc_id, data=encode(value)))

                self._apply_batch(s, documents, insert_one)

    async def update_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        async with self._lock.write():
            with self._session() as s:
                self._require_collection(s, collection)

                def update_one(entry: DocumentEntry) -> None:
                    raw_id, value = entry
                    doc_id = coerce_id(raw_id)
                    row = self._row(s, collection, doc_id)
                    if row is None:
                        logger.warning(
                            "batch_aborted", op="update", collection=collection, id=str(doc_id)
                        )
                        raise DocumentNotFoundError(doc_id, collection)
                    row.data = encode(value)
                    row.updated_ts = now_utc()

                self._apply_batch(s, documents, update_one)

    async def delete_documents(
        self, collection: str, ids: Sequence[DocumentId]
    ) -> None:
        async with self._lock.write():
            with self._session() as s:
                self._require_collection(s, collection)

                def delete_one(raw_id: DocumentId) -> None:
                    doc_id = coerce_id(raw_id)
                    row = self._row(s, collection, doc_id)
                    if row is None:
                        logger.warning(
                            "batch_aborted", op="delete", collection=collection, id=str(doc_id)
                        )
                        raise DocumentNotFoundError(doc_id, collection)
                    s.delete(row)

                self._apply_batch(s, ids, delete_one)

    async def get_documents(
        self, collection: str, ids: Sequence[uuid.UUID]
    ) -> List[Any]:
        if not ids:
            return []
        async with self._lock.read():
            with self._session() as s:
                q = select(DocumentRow.id, DocumentRow.data).where(
                    DocumentRow.collection == collection, DocumentRow.id.in_(list(ids))
                )
                found = {doc_id: data for doc_id, data in s.execute(q)}
        return [decode(found[i]) for i in ids if i in found]

    async def query_documents(self, collection: str, query: Query) -> List[Any]:
        async with self._lock.read():
            with self._session() as s:
                q = (
                    select(DocumentRow.data)
                    .where(DocumentRow.collection == collection)
                    .order_by(DocumentRow.seq)
                )
                values = [decode(data) for (data,) in s.execute(q)]
        return execute(query, values)

    # ---- revision pointer -------------------------------------------------
    async def current_revision(self) -> Optional[str]:
        async with self._lock.read():
            with self._session() as s:
                row = s.get(RevisionRow, REVISION_ROW_ID)
                return row.revision_id if row else None

    async def set_revision(self, revision_id: str) -> None:
        async with self._lock.write():
            with self._session() as s:
                row = s.get(RevisionRow, REVISION_ROW_ID)
                if row is None:
                    s.add(RevisionRow(id=REVISION_ROW_ID, revision_id=revision_id))
                else:
                    row.revision_id = revision_id
                    row.updated_ts = now_utc()
                s.commit()
        logger.debug("revision_persisted", revision=revision_id)

    # ---- collections ------------------------------------------------------
    async def create_collection(self, name: str) -> None:
        async with self._lock.write():
            with self._session() as s:
                if s.get(CollectionRow, name) is None:
                    s.add(CollectionRow(name=name))
                    s.commit()

    async def drop_collection(self, name: str) -> None:
        async with self._lock.write():
            with self._session() as s:
                row = s.get(CollectionRow, name)
                if row is None:
                    raise CollectionNotFoundError(name)
                s.execute(delete(DocumentRow).where(DocumentRow.collection == name))
                s.execute(delete(IndexRow).where(IndexRow.collection == name))
                s.delete(row)
                s.commit()
        logger.info("collection_dropped", collection=name)

    async def list_collections(self) -> List[str]:
        async with self._lock.read():
            with self._session() as s:
                q = select(CollectionRow.name).order_by(CollectionRow.name)
                return [name for (name,) in s.execute(q)]

    # ---- schema evolution -------------------------------------------------
    async def add_field(self, collection: str, field: str, default: Any) -> None:
        def change(record: dict) -> Optional[dict]:
            if field in record:
                return None
            record[field] = default
            return record

        async with self._lock.write():
            self._rewrite(collection, change)

    async def drop_field(self, collection: str, field: str) -> None:
        def change(record: dict) -> Optional[dict]:
            if field not in record:
                return None
            del record[field]
            return record

        async with self._lock.write():
            self._rewrite(collection, change)

    async def rename_field(self, collection: str, field: str, new: str) -> None:
        def change(record: dict) -> Optional[dict]:
            if field not in record:
                return None
            record[new] = record.pop(field)
            return record

        async with self._lock.write():
            self._rewrite(collection, change)

    async def add_index(self, collection: str, field: str, unique: bool = False) -> None:
        async with self._lock.write():
            with self._session() as s:
                self._require_collection(s, collection)
                s.merge(IndexRow(collection=collection, field=field, unique=unique))
                s.commit()

    async def drop_index(self, collection: str, field: str) -> None:
        async with self._lock.write():
            with self._session() as s:
                self._require_collection(s, collection)
                row = s.get(IndexRow, (collection, field))
                if row is not None:
                    s.delete(row)
                    s.commit()

    async def list_indexes(self, collection: str) -> List[IndexSpec]:
        async with self._lock.read():
            with self._session() as s:
                self._require_collection(s, collection)
                q = (
                    select(IndexRow.field, IndexRow.unique)
                    .where(IndexRow.collection == collection)
                    .order_by(IndexRow.field)
                )
                return [IndexSpec(field, unique) for field, unique in s.execute(q)]

    async def shutdown(self) -> None:
        self.engine.dispose()
