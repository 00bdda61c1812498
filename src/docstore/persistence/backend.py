"""
Capability interface every storage backend implements.

Collections, the migration runner and `DocumentStore` talk to a backend only
through these coroutines. Batch writes are applied entry by entry: on the
first failing entry (an invalid id included) the earlier ones stay committed
and the rest are skipped.
"""

from __future__ import annotations

import abc
import uuid
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple, Union

from ..errors import InvalidDocumentError
from ..query.spec import Query

DocumentId = Union[uuid.UUID, str]
DocumentEntry = Tuple[DocumentId, Any]


def coerce_id(doc_id: DocumentId) -> uuid.UUID:
    """UUID or UUID string ➜ UUID; anything else is InvalidDocumentError."""
    if isinstance(doc_id, uuid.UUID):
        return doc_id
    if isinstance(doc_id, str):
        try:
            return uuid.UUID(doc_id)
        except ValueError:
            pass
    raise InvalidDocumentError(f"{doc_id!r} is not a valid document id")


class IndexSpec(NamedTuple):
    """Index definition as registered by ``add_index``."""

    field: str
    unique: bool = False


class StoreBackend(abc.ABC):
    # ---- records ----------------------------------------------------------
    @abc.abstractmethod
    async def insert_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        """Create the collection if needed; fail on the first existing id."""

    @abc.abstractmethod
    async def update_documents(
        self, collection: str, documents: Sequence[DocumentEntry]
    ) -> None:
        """Replace values; fail on the first id not present."""

    @abc.abstractmethod
    async def delete_documents(
        self, collection: str, ids: Sequence[DocumentId]
    ) -> None:
        """Remove records; a missing id fails with DocumentNotFoundError."""

    @abc.abstractmethod
    async def get_documents(
        self, collection: str, ids: Sequence[uuid.UUID]
    ) -> List[Any]:
        """Values for the ids present, in request order; missing ids are omitted."""

    @abc.abstractmethod
    async def query_documents(self, collection: str, query: Query) -> List[Any]: ...

    # ---- revision pointer -------------------------------------------------
    @abc.abstractmethod
    async def current_revision(self) -> Optional[str]: ...

    @abc.abstractmethod
    async def set_revision(self, revision_id: str) -> None: ...

    # ---- collections ------------------------------------------------------
    @abc.abstractmethod
    async def create_collection(self, name: str) -> None: ...

    @abc.abstractmethod
    async def drop_collection(self, name: str) -> None: ...

    @abc.abstractmethod
    async def list_collections(self) -> List[str]: ...

    # ---- schema evolution -------------------------------------------------
    @abc.abstractmethod
    async def add_field(self, collection: str, field: str, default: Any) -> None:
        """Set ``field`` to ``default`` on every record that lacks it."""

    @abc.abstractmethod
    async def drop_field(self, collection: str, field: str) -> None: ...

    @abc.abstractmethod
    async def rename_field(self, collection: str, field: str, new: str) -> None: ...

    @abc.abstractmethod
    async def add_index(self, collection: str, field: str, unique: bool = False) -> None:
        """Record an index definition. ``unique`` is stored, not enforced on writes."""

    @abc.abstractmethod
    async def drop_index(self, collection: str, field: str) -> None: ...

    @abc.abstractmethod
    async def list_indexes(self, collection: str) -> List[IndexSpec]: ...

    async def shutdown(self) -> None:
        """Release driver resources. Nothing to do by default."""
