"""
Typed documents – *pure Pydantic* models bound to a collection.

* Every subclass gets a collection name at class-creation time
  (snake_case of the class name unless ``__collection__`` is set).
* ``to_value`` / ``from_value`` convert between a model and the plain
  mapping the backends store.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, ClassVar, Dict, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from ..errors import SerializationError

T_Document = TypeVar("T_Document", bound="Document")
ModelMeta = BaseModel.__class__


# helpers
def _snake(name: str) -> str:
    """CamelCase ➜ snake_case."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


# metaclass that assigns the collection name
class DocumentMeta(ModelMeta):
    """Attach ``__collection__`` at class-creation time."""

    def __new__(mcls, name: str, bases, ns, **kw):
        cls = super().__new__(mcls, name, bases, ns, **kw)  # create class first
        if name == "Document":  # skip abstract base
            return cls

        if not ns.get("__collection__"):
            cls.__collection__ = _snake(name)  # type: ignore[attr-defined]
        return cls


# Document base
class Document(BaseModel, metaclass=DocumentMeta):
    """Base class for records with a known shape."""

    __collection__: ClassVar[str] = ""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)

    # unknown keys survive a round trip, e.g. fields added by a migration
    model_config = {"extra": "allow"}

    @classmethod
    def collection_name(cls) -> str:
        return cls.__collection__

    def to_value(self) -> Dict[str, Any]:
        """Plain mapping as stored by a backend (id rendered as a string)."""
        data = self.model_dump(mode="python")
        data["id"] = str(self.id)
        return data

    @classmethod
    def from_value(cls: Type[T_Document], value: Any) -> T_Document:
        try:
            return cls.model_validate(value)
        except ValidationError as exc:
            raise SerializationError(
                f"cannot load {cls.__name__} from stored value: {exc}"
            ) from exc
