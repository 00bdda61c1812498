"""
Public surface for docstore.
Importing this module does **not** open any database; call
`docstore.open_store()` (or build a `DocumentStore` around a backend)
during application start-up.
"""

from .bootstrap import open_store, register_backend
from .collection import Collection, TypedCollection
from .config import StoreSettings
from .core.document import Document
from .errors import (
    BackendError,
    CollectionNotFoundError,
    DocumentAlreadyExistsError,
    DocumentNotFoundError,
    DocumentStoreError,
    EmptyRevisionGraphError,
    InitializationError,
    InvalidDocumentError,
    MigrationError,
    MigrationStepError,
    NoMigrationPathError,
    SerializationError,
    UnknownError,
)
from .migrations.registry import MigrationRegistry
from .migrations.runner import MigrationDirection, MigrationRunner, MigrationStep, OperationContext
from .page import Page, PaginationParams
from .persistence.memory import InMemoryStore
from .persistence.sql import SqlStore
from .query.filters import Filter, FieldOp
from .query.spec import Query, Sort, SortDirection
from .store import DocumentStore

__all__ = [
    "BackendError",
    "Collection",
    "CollectionNotFoundError",
    "Document",
    "DocumentAlreadyExistsError",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "EmptyRevisionGraphError",
    "FieldOp",
    "Filter",
    "InMemoryStore",
    "InitializationError",
    "InvalidDocumentError",
    "MigrationDirection",
    "MigrationError",
    "MigrationRegistry",
    "MigrationRunner",
    "MigrationStep",
    "MigrationStepError",
    "NoMigrationPathError",
    "OperationContext",
    "Page",
    "PaginationParams",
    "Query",
    "SerializationError",
    "Sort",
    "SortDirection",
    "SqlStore",
    "StoreSettings",
    "TypedCollection",
    "UnknownError",
    "open_store",
    "register_backend",
]
