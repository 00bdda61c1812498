"""
Relational schema for the SQL backend: collections, their documents, index
definitions and the single revision pointer.
"""

import datetime as dt

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on Postgres, plain JSON everywhere else
DocumentData = JSON().with_variant(JSONB(), "postgresql")

REVISION_ROW_ID = 1


def now_utc() -> dt.datetime:  # compact timezone‑aware timestamp
    return dt.datetime.now(tz=dt.timezone.utc)


class CollectionRow(Base):
    __tablename__ = "collections"

    name = Column(String, primary_key=True)
    created_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)


class DocumentRow(Base):
    """One record; ``seq`` keeps insertion order for unsorted queries."""

    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "id", name="uq_documents_id"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String, nullable=False, index=True)
    id = Column(Uuid(as_uuid=True), nullable=False)
    created_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    data = Column(DocumentData, nullable=True)


class IndexRow(Base):
    __tablename__ = "document_indexes"

    collection = Column(String, primary_key=True)
    field = Column(String, primary_key=True)
    unique = Column(Boolean, nullable=False, default=False)


class RevisionRow(Base):
    """Single-row table holding the current schema revision."""

    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, default=REVISION_ROW_ID)
    revision_id = Column(String, nullable=True)
    updated_ts = Column(DateTime(timezone=True), default=now_utc, nullable=False)
