"""
Error kinds raised by docstore.

Every failure surfaced by a collection, a backend, the query engine or the
migration runner is a `DocumentStoreError`; callers can catch the base class
or one of the specific kinds below.
"""

from __future__ import annotations

from typing import Any


class DocumentStoreError(Exception):
    """Base class for all docstore failures."""


class SerializationError(DocumentStoreError):
    def __init__(self, detail: str):
        super().__init__(f"Serialization error: {detail}")


class InitializationError(DocumentStoreError):
    def __init__(self, detail: str):
        super().__init__(f"Initialization error: {detail}")


class DocumentAlreadyExistsError(DocumentStoreError):
    def __init__(self, doc_id: Any, collection: str):
        self.doc_id = str(doc_id)
        self.collection = collection
        super().__init__(
            f"Document {self.doc_id} already exists in collection {collection}"
        )


class DocumentNotFoundError(DocumentStoreError):
    def __init__(self, doc_id: Any, collection: str):
        self.doc_id = str(doc_id)
        self.collection = collection
        super().__init__(f"Document not found {self.doc_id} in collection {collection}")


class CollectionNotFoundError(DocumentStoreError):
    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Collection not found: {collection}")


class InvalidDocumentError(DocumentStoreError):
    """A stored or supplied value is not shaped like a record."""

    def __init__(self, detail: str):
        super().__init__(f"Invalid document: {detail}")


class BackendError(DocumentStoreError):
    """Opaque failure reported by the storage driver."""

    def __init__(self, detail: str):
        super().__init__(f"Backend error: {detail}")


class MigrationError(DocumentStoreError):
    def __init__(self, detail: str):
        super().__init__(f"Migration error: {detail}")


class EmptyRevisionGraphError(MigrationError):
    """No migration steps were registered, so there is no head or tail."""


class NoMigrationPathError(MigrationError):
    def __init__(self, from_revision: str, to_revision: str, direction: str):
        self.from_revision = from_revision
        self.to_revision = to_revision
        self.direction = direction
        kind = "upgrade" if direction == "up" else "downgrade"
        super().__init__(
            f"No {kind} path from revision '{from_revision}' to '{to_revision}'"
        )


class MigrationStepError(MigrationError):
    """A step's up/down effect failed; the original exception is chained."""

    def __init__(self, step_id: str, direction: str, detail: str):
        self.step_id = step_id
        self.direction = direction
        super().__init__(f"step '{step_id}' failed while migrating {direction}: {detail}")


class UnknownError(DocumentStoreError):
    def __init__(self, detail: str):
        super().__init__(f"Unknown error: {detail}")
