"""
Runtime settings, read from the environment (and a local ``.env`` file).

    DOCSTORE_BACKEND        memory | sql            (default: memory)
    DOCSTORE_DATABASE_URL   SQLAlchemy URL          (required for sql)
    DOCSTORE_LOG_LEVEL      DEBUG | INFO | ...      (default: INFO)
    DOCSTORE_ECHO_SQL       true | false            (default: false)
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import InitializationError

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class StoreSettings(BaseModel):
    model_config = {"frozen": True}

    backend: str = "memory"
    database_url: Optional[str] = None
    log_level: str = "INFO"
    echo_sql: bool = False

    @field_validator("backend")
    @classmethod
    def normalise_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("backend name must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def known_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}'")
        return value

    @model_validator(mode="after")
    def url_for_sql(self) -> "StoreSettings":
        if self.backend == "sql" and not self.database_url:
            raise ValueError("DOCSTORE_DATABASE_URL is required for the sql backend")
        return self

    @classmethod
    def from_env(cls) -> "StoreSettings":
        load_dotenv()

        values = {
            "backend": os.getenv("DOCSTORE_BACKEND", "memory"),
            "database_url": os.getenv("DOCSTORE_DATABASE_URL") or None,
            "log_level": os.getenv("DOCSTORE_LOG_LEVEL", "INFO"),
            "echo_sql": os.getenv("DOCSTORE_ECHO_SQL", "false"),
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise InitializationError(f"invalid settings: {exc}") from exc
