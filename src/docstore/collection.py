"""
Collection handles – cheap, stateless views bound to one named collection.
"""

from __future__ import annotations

import uuid
from typing import Any, Generic, Iterable, List, Optional, Tuple, Type, TypeVar

from .core.document import Document
from .page import Page, PaginationParams
from .persistence.backend import DocumentId, StoreBackend, coerce_id
from .query.spec import Query

D = TypeVar("D", bound=Document)


def _unpaged(query: Optional[Query]) -> Query:
    if query is None:
        return Query()
    return query.model_copy(update={"offset": None, "limit": None})


class Collection:
    """Raw records: ``(id, value)`` pairs with schemaless values."""

    def __init__(self, name: str, backend: StoreBackend):
        self.name = name
        self.backend = backend

    def __repr__(self) -> str:
        return f"Collection({self.name!r})"

    async def insert(self, documents: Iterable[Tuple[DocumentId, Any]]) -> None:
        await self.backend.insert_documents(self.name, list(documents))

    async def insert_one(self, value: Any, doc_id: Optional[DocumentId] = None) -> uuid.UUID:
        """Insert one record, generating its id when none is given."""
        new_id = coerce_id(doc_id) if doc_id is not None else uuid.uuid4()
        await self.backend.insert_documents(self.name, [(new_id, value)])
        return new_id

    async def update(self, documents: Iterable[Tuple[DocumentId, Any]]) -> None:
        await self.backend.update_documents(self.name, list(documents))

    async def delete(self, ids: Iterable[DocumentId]) -> None:
        await self.backend.delete_documents(self.name, list(ids))

    async def get(self, ids: Iterable[DocumentId]) -> List[Any]:
        return await self.backend.get_documents(self.name, [coerce_id(i) for i in ids])

    async def query(self, query: Optional[Query] = None) -> List[Any]:
        return await self.backend.query_documents(self.name, query or Query())

    async def query_page(
        self, params: PaginationParams, query: Optional[Query] = None
    ) -> Page[Any]:
        """Run ``query`` (its own offset/limit ignored) and cut one page."""
        items = await self.backend.query_documents(self.name, _unpaged(query))
        return params.paginate(items)


class TypedCollection(Generic[D]):
    """Records loaded into and stored from a `Document` subclass."""

    def __init__(self, document_cls: Type[D], backend: StoreBackend):
        self.document_cls = document_cls
        self.name = document_cls.collection_name()
        self.backend = backend

    def __repr__(self) -> str:
        return f"TypedCollection({self.document_cls.__name__}, {self.name!r})"

    def _load(self, values: List[Any]) -> List[D]:
        return [self.document_cls.from_value(value) for value in values]

    async def insert(self, documents: Iterable[D]) -> None:
        await self.backend.insert_documents(
            self.name, [(doc.id, doc.to_value()) for doc in documents]
        )

    async def update(self, documents: Iterable[D]) -> None:
        await self.backend.update_documents(
            self.name, [(doc.id, doc.to_value()) for doc in documents]
        )

    async def delete(self, ids: Iterable[DocumentId]) -> None:
        await self.backend.delete_documents(self.name, list(ids))

    async def get(self, ids: Iterable[DocumentId]) -> List[D]:
        values = await self.backend.get_documents(self.name, [coerce_id(i) for i in ids])
        return self._load(values)

    async def query(self, query: Optional[Query] = None) -> List[D]:
        return self._load(await self.backend.query_documents(self.name, query or Query()))

    async def query_page(
        self, params: PaginationParams, query: Optional[Query] = None
    ) -> Page[D]:
        items = await self.backend.query_documents(self.name, _unpaged(query))
        page = params.paginate(items)
        return page.model_copy(update={"items": self._load(page.items)})
