"""Base document repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Mapping, Optional, TypeVar, Union

from .cursor import AsyncDocumentCursor, DocumentCursor
from .expressions import Expression, Projection
from .models import Document
from .options import DeleteOptions, InsertManyOptions, ReplaceOptions

DocT = TypeVar("DocT", bound=Document)
KeyT = TypeVar("KeyT")
ResultT = TypeVar("ResultT")

Predicate = Union[Expression, Mapping[str, Any]]
ProjectionLike = Union[Projection, Callable[[Any], Any]]


class DocumentRepository(ABC, Generic[DocT, KeyT]):
    """
    Repository over one collection of ``DocT`` documents keyed by ``KeyT``.

    Every operation has a blocking form and an ``_async`` form. Point lookups
    return ``None`` when nothing matches; every other failure propagates to the
    caller. Nothing here retries: retry policy belongs to the caller or to the
    driver. Implementations hold no per-call state and can be shared between
    concurrent callers.
    """

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @abstractmethod
    def find(
        self,
        filter: Optional[Predicate] = None,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> DocumentCursor[Any]:
        """Lazy cursor over documents matching ``filter``; refine with sort/skip/limit."""
        pass

    @abstractmethod
    def find_async(
        self,
        filter: Optional[Predicate] = None,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> AsyncDocumentCursor[Any]:
        """Async cursor over documents matching ``filter``."""
        pass

    @abstractmethod
    def as_queryable(self) -> Any:
        """Composable query over the collection."""
        pass

    @abstractmethod
    def filter_by(
        self,
        predicate: Predicate,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> List[Any]:
        """All matches, materialized, optionally projected."""
        pass

    @abstractmethod
    async def filter_by_async(
        self,
        predicate: Predicate,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> List[Any]:
        pass

    @abstractmethod
    async def all_async(self, *, session: Any = None) -> AsyncDocumentCursor[DocT]:
        """Cursor over every document; the caller iterates and closes it."""
        pass

    @abstractmethod
    def find_one(self, predicate: Predicate, *, session: Any = None) -> Optional[DocT]:
        """First match or None."""
        pass

    @abstractmethod
    async def find_one_async(self, predicate: Predicate, *, session: Any = None) -> Optional[DocT]:
        pass

    @abstractmethod
    def find_by_id(self, key: KeyT, *, session: Any = None) -> Optional[DocT]:
        """Document with ``key`` or None."""
        pass

    @abstractmethod
    async def find_by_id_async(self, key: KeyT, *, session: Any = None) -> Optional[DocT]:
        pass

    @abstractmethod
    def count(self, predicate: Optional[Predicate] = None, *, session: Any = None) -> int:
        """Number of matching documents."""
        pass

    @abstractmethod
    async def count_async(self, predicate: Optional[Predicate] = None, *, session: Any = None) -> int:
        pass

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    @abstractmethod
    def insert_one(self, document: DocT, *, session: Any = None) -> DocT:
        """Insert ``document``; returns it with its key set."""
        pass

    @abstractmethod
    async def insert_one_async(self, document: DocT, *, session: Any = None) -> DocT:
        pass

    @abstractmethod
    def insert_many(
        self,
        documents: Iterable[DocT],
        options: Optional[InsertManyOptions] = None,
        *,
        session: Any = None,
    ) -> List[DocT]:
        """Insert a batch of documents."""
        pass

    @abstractmethod
    async def insert_many_async(
        self,
        documents: Iterable[DocT],
        options: Optional[InsertManyOptions] = None,
        *,
        session: Any = None,
    ) -> List[DocT]:
        pass

    @abstractmethod
    def find_one_and_replace(
        self,
        document: DocT,
        options: Optional[ReplaceOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        """Replace the stored document sharing ``document``'s key."""
        pass

    @abstractmethod
    async def find_one_and_replace_async(
        self,
        document: DocT,
        options: Optional[ReplaceOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        pass

    @abstractmethod
    def delete_one(
        self,
        predicate: Predicate,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        """Delete at most one match."""
        pass

    @abstractmethod
    async def delete_one_async(
        self,
        predicate: Predicate,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        pass

    @abstractmethod
    def delete_by_id(
        self,
        key: KeyT,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        """Delete the document with ``key``; no-op when absent."""
        pass

    @abstractmethod
    async def delete_by_id_async(
        self,
        key: KeyT,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        pass

    @abstractmethod
    def delete_many(self, predicate: Predicate, *, session: Any = None) -> int:
        """Delete every match; returns the number deleted."""
        pass

    @abstractmethod
    async def delete_many_async(self, predicate: Predicate, *, session: Any = None) -> int:
        pass

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @abstractmethod
    def with_transaction(self, body: Callable[[Any], ResultT]) -> ResultT:
        """Run ``body(session)`` in one transaction; commit on return, abort on error."""
        pass

    @abstractmethod
    async def with_transaction_async(self, body: Callable[[Any], Awaitable[ResultT]]) -> ResultT:
        pass
