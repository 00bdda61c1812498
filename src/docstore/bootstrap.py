"""
Single entry-point that turns settings into a ready `DocumentStore`.
Call once during application start-up.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from .config import StoreSettings
from .errors import InitializationError
from .logging_config import configure_logging, get_logger
from .persistence.backend import StoreBackend
from .persistence.memory import InMemoryStore
from .persistence.sql import SqlStore
from .store import DocumentStore

logger = get_logger(__name__)

BackendBuilder = Callable[[StoreSettings], StoreBackend]

_BUILDERS: Dict[str, BackendBuilder] = {}


def register_backend(name: str) -> Callable[[BackendBuilder], BackendBuilder]:
    """Decorator registering a backend builder under ``name``."""

    def decorator(builder: BackendBuilder) -> BackendBuilder:
        _BUILDERS[name] = builder
        return builder

    return decorator


def backend_names() -> list[str]:
    return sorted(_BUILDERS)


@register_backend("memory")
def _memory_backend(settings: StoreSettings) -> StoreBackend:
    return InMemoryStore()


@register_backend("sql")
def _sql_backend(settings: StoreSettings) -> StoreBackend:
    try:
        url = make_url(settings.database_url)
    except SQLAlchemyError as exc:
        raise InitializationError(f"invalid database url: {exc}") from exc
    kwargs: dict = {"future": True, "echo": settings.echo_sql}
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # one shared connection, or every session sees an empty database
        kwargs.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        kwargs["pool_pre_ping"] = True
    try:
        engine = create_engine(url, **kwargs)
    except (SQLAlchemyError, ImportError) as exc:
        raise InitializationError(f"cannot create engine for {url.get_backend_name()}: {exc}") from exc
    return SqlStore(engine)


def open_store(settings: Optional[StoreSettings] = None) -> DocumentStore:
    """
    Build the configured backend and wrap it in a `DocumentStore`.
    Settings default to `StoreSettings.from_env()`.
    """
    settings = settings or StoreSettings.from_env()
    configure_logging(settings.log_level)

    builder = _BUILDERS.get(settings.backend)
    if builder is None:
        raise InitializationError(
            f"unknown backend '{settings.backend}', expected one of: {', '.join(backend_names())}"
        )
    store = DocumentStore(builder(settings))
    logger.info("store_opened", backend=settings.backend)
    return store
