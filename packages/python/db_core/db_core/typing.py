"""Typing aliases shared by the Mongo-backed packages."""

from typing import Any, Mapping, MutableMapping, Sequence, Tuple, Union

MongoDocument = Mapping[str, Any]
RawDocument = MutableMapping[str, Any]
MongoFilter = Mapping[str, Any]
SortSpec = Sequence[Tuple[str, int]]
SortLike = Union[str, SortSpec]
