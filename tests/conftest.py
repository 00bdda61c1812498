"""Shared fixtures: one store per backend."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine

from docstore import DocumentStore, InMemoryStore, SqlStore


@pytest.fixture
def memory_store() -> DocumentStore:
    return DocumentStore(InMemoryStore())


@pytest.fixture
def sql_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'docs.db'}", future=True)
    yield DocumentStore(SqlStore(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request) -> DocumentStore:
    """Runs the test once against each backend."""
    return request.getfixturevalue(f"{request.param}_store")
