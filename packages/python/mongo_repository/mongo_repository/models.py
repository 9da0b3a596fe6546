"""Pydantic base model for documents stored through the repository."""

from __future__ import annotations

import re
import typing
import uuid
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from bson import ObjectId
from db_core.typing import MongoDocument, RawDocument
from pydantic import BaseModel, ConfigDict, Field

KeyT = TypeVar("KeyT")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class IndexSpec:
    """Index declared on a document class and created by ``ensure_indexes``."""

    keys: Sequence[Tuple[str, int]]
    unique: bool = False
    name: Optional[str] = None
    options: dict = field(default_factory=dict)


class Document(BaseModel, Generic[KeyT]):
    """
    Base class for stored documents.

    - ``id`` is the document key, persisted as ``_id``
    - ``collection_name`` overrides the default snake_case collection name
    - ``indexes`` lists secondary indexes for ``ensure_indexes``

    Subclasses pick the key type through the generic parameter, e.g.
    ``class User(Document[ObjectId])`` or ``class Tag(Document[str])``.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    collection_name: ClassVar[Optional[str]] = None
    indexes: ClassVar[List[IndexSpec]] = []

    id: Optional[KeyT] = Field(default=None, alias="_id")

    @classmethod
    def get_collection_name(cls) -> str:
        if cls.collection_name:
            return cls.collection_name
        return _CAMEL_BOUNDARY.sub("_", cls.__name__).lower()

    @classmethod
    def key_type(cls) -> Type[Any]:
        """Return the concrete key type declared for ``id``."""

        annotation = cls.model_fields["id"].annotation
        candidates = [arg for arg in typing.get_args(annotation) if arg is not type(None)] or [annotation]
        key_type = candidates[0]
        if key_type is None or isinstance(key_type, TypeVar):
            return object
        return key_type

    def to_mongo(self) -> RawDocument:
        """Serialize for storage; a missing key is left for the store to assign."""

        data = self.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls, raw: Optional[MongoDocument]):
        if raw is None:
            return None
        return cls.model_validate(raw)


def generate_key(key_type: Type[Any]) -> Any:
    """Client-side key for key types the store does not assign itself."""

    if key_type is str:
        return uuid.uuid4().hex
    if key_type is uuid.UUID:
        return uuid.uuid4()
    if key_type is ObjectId:
        return ObjectId()
    return None
