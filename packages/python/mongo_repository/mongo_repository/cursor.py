"""Lazy cursors yielding validated documents."""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Generic, Iterator, List, Optional, TypeVar, Union

from pymongo import ASCENDING, DESCENDING

from db_core.typing import SortLike

from .expressions import FieldPath

T = TypeVar("T")

SortKey = Union[SortLike, FieldPath]


def normalize_sort(key: SortKey, direction: Optional[int] = None) -> list[tuple[str, int]]:
    """
    Accepts ``"rank"``, ``"-rank"``, a ``FieldPath`` or a list of
    ``(field, direction)`` pairs and returns the pair list PyMongo expects.
    """

    if isinstance(key, FieldPath):
        return [(key.path, direction or ASCENDING)]
    if isinstance(key, str):
        if direction is None and key.startswith("-"):
            return [(key[1:], DESCENDING)]
        return [(key, direction or ASCENDING)]
    return [(field, order) for field, order in key]


class DocumentCursor(Generic[T]):
    """Wraps a PyMongo cursor; nothing runs on the server until iteration.

    Refinements mutate the driver cursor in place, as PyMongo and Motor do.
    """

    def __init__(self, cursor: Any, transform: Callable[[Any], T]):
        self._cursor = cursor
        self._transform = transform

    @property
    def raw(self) -> Any:
        return self._cursor

    def sort(self, key: SortKey, direction: Optional[int] = None) -> "DocumentCursor[T]":
        self._cursor.sort(normalize_sort(key, direction))
        return self

    def skip(self, count: int) -> "DocumentCursor[T]":
        self._cursor.skip(count)
        return self

    def limit(self, count: int) -> "DocumentCursor[T]":
        self._cursor.limit(count)
        return self

    def __iter__(self) -> Iterator[T]:
        for raw in self._cursor:
            yield self._transform(raw)

    def to_list(self) -> List[T]:
        return list(self)

    def first(self) -> Optional[T]:
        """Return the first document, or ``None``, and release the cursor."""

        try:
            return next(iter(self), None)
        finally:
            self.close()

    def close(self) -> None:
        self._cursor.close()

    def __enter__(self) -> "DocumentCursor[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncDocumentCursor(Generic[T]):
    """Async counterpart of ``DocumentCursor`` wrapping a Motor cursor."""

    def __init__(self, cursor: Any, transform: Callable[[Any], T]):
        self._cursor = cursor
        self._transform = transform

    @property
    def raw(self) -> Any:
        return self._cursor

    def sort(self, key: SortKey, direction: Optional[int] = None) -> "AsyncDocumentCursor[T]":
        self._cursor.sort(normalize_sort(key, direction))
        return self

    def skip(self, count: int) -> "AsyncDocumentCursor[T]":
        self._cursor.skip(count)
        return self

    def limit(self, count: int) -> "AsyncDocumentCursor[T]":
        self._cursor.limit(count)
        return self

    async def __aiter__(self) -> AsyncIterator[T]:
        async for raw in self._cursor:
            yield self._transform(raw)

    async def to_list(self) -> List[T]:
        return [item async for item in self]

    async def first(self) -> Optional[T]:
        try:
            async for item in self:
                return item
            return None
        finally:
            await self.close()

    async def close(self) -> None:
        await self._cursor.close()

    async def __aenter__(self) -> "AsyncDocumentCursor[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
