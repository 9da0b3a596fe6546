"""Composable, immutable query builder bound to a repository."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from .cursor import SortKey, normalize_sort
from .errors import InvalidArgumentError

if TYPE_CHECKING:  # pragma: no cover
    from .contract import Predicate, ProjectionLike
    from .repository import MongoRepository


@dataclass(frozen=True)
class Query:
    """
    Ad hoc query over one collection.

    Each builder call returns a new ``Query``; nothing touches the store
    until a terminal method (``to_list``, ``first``, ``count`` or their
    ``_async`` forms) runs.

        query = (
            repo.as_queryable()
            .where(f.status == "open")
            .where(f.rank > 3)
            .order_by("rank", descending=True)
            .limit(10)
        )
        top = query.to_list()
    """

    repository: "MongoRepository"
    predicates: Tuple[Any, ...] = ()
    projection: Optional["ProjectionLike"] = None
    sort_spec: Tuple[Tuple[str, int], ...] = ()
    skip_count: int = 0
    limit_count: int = 0

    def where(self, predicate: "Predicate") -> "Query":
        return replace(self, predicates=self.predicates + (predicate,))

    def select(self, projection: "ProjectionLike") -> "Query":
        return replace(self, projection=projection)

    def order_by(self, key: SortKey, descending: bool = False) -> "Query":
        direction = DESCENDING if descending else ASCENDING
        if isinstance(key, str) and key.startswith("-"):
            pairs = normalize_sort(key)
        else:
            pairs = normalize_sort(key, direction)
        return replace(self, sort_spec=self.sort_spec + tuple(pairs))

    def skip(self, count: int) -> "Query":
        if count < 0:
            raise InvalidArgumentError("skip must not be negative")
        return replace(self, skip_count=count)

    def limit(self, count: int) -> "Query":
        if count < 0:
            raise InvalidArgumentError("limit must not be negative")
        return replace(self, limit_count=count)

    def filter_document(self) -> dict[str, Any]:
        translate = self.repository.translator.translate
        clauses = [translate(predicate) for predicate in self.predicates]
        clauses = [clause for clause in clauses if clause]
        if not clauses:
            return {}
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    def _refine(self, cursor):
        if self.sort_spec:
            cursor = cursor.sort(list(self.sort_spec))
        if self.skip_count:
            cursor = cursor.skip(self.skip_count)
        if self.limit_count:
            cursor = cursor.limit(self.limit_count)
        return cursor

    def _count_kwargs(self) -> dict[str, int]:
        kwargs: dict[str, int] = {}
        if self.skip_count:
            kwargs["skip"] = self.skip_count
        if self.limit_count:
            kwargs["limit"] = self.limit_count
        return kwargs

    # Blocking terminals

    def to_list(self, *, session: Any = None) -> List[Any]:
        cursor = self.repository.find(self.filter_document(), self.projection, session=session)
        return self._refine(cursor).to_list()

    def first(self, *, session: Any = None) -> Optional[Any]:
        return next(iter(self.limit(1).to_list(session=session)), None)

    def count(self, *, session: Any = None) -> int:
        return self.repository.collection.count_documents(
            self.filter_document(), session=session, **self._count_kwargs()
        )

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_list())

    # Async terminals

    async def to_list_async(self, *, session: Any = None) -> List[Any]:
        cursor = self.repository.find_async(self.filter_document(), self.projection, session=session)
        return await self._refine(cursor).to_list()

    async def first_async(self, *, session: Any = None) -> Optional[Any]:
        results = await self.limit(1).to_list_async(session=session)
        return next(iter(results), None)

    async def count_async(self, *, session: Any = None) -> int:
        return await self.repository.async_collection.count_documents(
            self.filter_document(), session=session, **self._count_kwargs()
        )
