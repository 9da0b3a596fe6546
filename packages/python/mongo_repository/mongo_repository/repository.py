"""MongoDB implementation of the document repository.

Blocking operations go through a PyMongo collection, ``_async`` operations
through a Motor collection. Both default to the clients configured in
``db_core``; tests and applications with their own clients can inject the
collections directly.
"""

from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, Sequence, Tuple, Type

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.collection import Collection
from pymongo.errors import BulkWriteError
from pymongo.errors import DuplicateKeyError as PyMongoDuplicateKeyError

from db_core import get_db, get_sync_db

from .contract import DocT, DocumentRepository, KeyT, Predicate, ProjectionLike, ResultT
from .cursor import AsyncDocumentCursor, DocumentCursor, normalize_sort
from .errors import DuplicateKeyError, InsertFailure, InsertManyError, InvalidArgumentError, InvalidIdError
from .expressions import Projection
from .models import generate_key
from .options import DeleteOptions, InsertManyOptions, ReplaceOptions
from .queryable import Query
from .translation import ID_FIELD, MongoFilterTranslator, translate_projection


class MongoRepository(DocumentRepository[DocT, KeyT], Generic[DocT, KeyT]):
    """
    Generic repository for one MongoDB collection.

    Usage:
        class User(Document[ObjectId]):
            name: str

        users = MongoRepository(User)
        user = users.insert_one(User(name="a"))
        same = users.find_by_id(str(user.id))
    """

    def __init__(
        self,
        document_class: Type[DocT],
        *,
        collection: Optional[Collection] = None,
        async_collection: Optional[AsyncIOMotorCollection] = None,
        collection_name: Optional[str] = None,
    ):
        self.document_class = document_class
        self.collection_name = collection_name or document_class.get_collection_name()
        self._collection = collection
        self._async_collection = async_collection
        self.translator = MongoFilterTranslator(id_converter=self.to_native_id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.document_class.__name__}, collection={self.collection_name!r})"

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    @property
    def collection(self) -> Collection:
        if self._collection is not None:
            return self._collection
        return get_sync_db()[self.collection_name]

    @property
    def async_collection(self) -> AsyncIOMotorCollection:
        if self._async_collection is not None:
            return self._async_collection
        return get_db()[self.collection_name]

    def to_native_id(self, key: Any) -> Any:
        """Convert ``key`` to the stored ``_id`` representation or raise ``InvalidIdError``."""

        key_type = self.document_class.key_type()
        if key_type is ObjectId:
            if isinstance(key, ObjectId):
                return key
            if isinstance(key, str) and ObjectId.is_valid(key):
                return ObjectId(key)
            raise InvalidIdError(key, "ObjectId")
        if key_type is object:
            return key
        if key_type is uuid.UUID and isinstance(key, str):
            try:
                return uuid.UUID(key)
            except ValueError as exc:
                raise InvalidIdError(key, "UUID") from exc
        if isinstance(key, bool) and key_type is not bool:
            raise InvalidIdError(key, key_type.__name__)
        if isinstance(key, key_type):
            return key
        raise InvalidIdError(key, key_type.__name__)

    def _to_model(self, raw: Optional[dict]) -> Optional[DocT]:
        return self.document_class.from_mongo(raw)

    def _projection_plan(self, projection: Optional[ProjectionLike]) -> Tuple[Optional[dict], Callable[[Any], Any]]:
        if projection is None:
            return None, self.document_class.model_validate
        if isinstance(projection, Projection):
            return translate_projection(projection), dict
        if callable(projection):
            model_validate = self.document_class.model_validate
            return None, lambda raw: projection(model_validate(raw))
        raise InvalidArgumentError(f"Unsupported projection {projection!r}")

    def _prepare_insert(self, document: DocT) -> dict[str, Any]:
        """Build the insert payload; the model itself is left untouched until the write succeeds."""

        if document.id is None:
            key_type = self.document_class.key_type()
            key = generate_key(ObjectId if key_type is object else key_type)
            if key is None:
                raise InvalidArgumentError(
                    f"{self.document_class.__name__} keys of type {key_type.__name__} must be set before insert"
                )
        else:
            key = self.to_native_id(document.id)
        data = document.to_mongo()
        data[ID_FIELD] = key
        return data

    @staticmethod
    def _assign_keys(documents: Sequence[DocT], payload: Sequence[dict[str, Any]]) -> None:
        for document, data in zip(documents, payload):
            document.id = data[ID_FIELD]

    def _replacement(self, document: DocT) -> Tuple[Any, dict[str, Any]]:
        if document.id is None:
            raise InvalidArgumentError("Replacement document has no key")
        key = self.to_native_id(document.id)
        data = document.to_mongo()
        data[ID_FIELD] = key
        return key, data

    def _delete_filter(self, key: Any) -> dict[str, Any]:
        return {ID_FIELD: self.to_native_id(key)}

    @staticmethod
    def _duplicate_key(key: Any) -> DuplicateKeyError:
        return DuplicateKeyError(f"Duplicate key while writing document {key!r}", key=key)

    def _insert_many_error(
        self,
        exc: BulkWriteError,
        documents: Sequence[DocT],
        payload: Sequence[dict[str, Any]],
        ordered: bool,
    ) -> InsertManyError:
        write_errors = (exc.details or {}).get("writeErrors", [])
        failures = [
            InsertFailure(index=error["index"], code=error.get("code", 0), message=error.get("errmsg", ""))
            for error in write_errors
        ]
        failed = {failure.index for failure in failures}
        if ordered and failed:
            stored = list(range(min(failed)))
        else:
            stored = [index for index in range(len(payload)) if index not in failed]
        # Only documents the store accepted get their key written back.
        self._assign_keys([documents[index] for index in stored], [payload[index] for index in stored])
        logger.warning(
            f"insert_many into {self.collection_name} rejected {len(failures)} of {len(documents)} documents"
        )
        return InsertManyError([payload[index][ID_FIELD] for index in stored], failures, ordered)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def find(
        self,
        filter: Optional[Predicate] = None,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> DocumentCursor[Any]:
        query = self.translator.translate(filter)
        mongo_projection, transform = self._projection_plan(projection)
        cursor = self.collection.find(query, mongo_projection, session=session)
        return DocumentCursor(cursor, transform)

    def find_async(
        self,
        filter: Optional[Predicate] = None,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> AsyncDocumentCursor[Any]:
        query = self.translator.translate(filter)
        mongo_projection, transform = self._projection_plan(projection)
        cursor = self.async_collection.find(query, mongo_projection, session=session)
        return AsyncDocumentCursor(cursor, transform)

    def as_queryable(self) -> Query:
        return Query(self)

    def filter_by(
        self,
        predicate: Predicate,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> List[Any]:
        return self.find(predicate, projection, session=session).to_list()

    async def filter_by_async(
        self,
        predicate: Predicate,
        projection: Optional[ProjectionLike] = None,
        *,
        session: Any = None,
    ) -> List[Any]:
        return await self.find_async(predicate, projection, session=session).to_list()

    async def all_async(self, *, session: Any = None) -> AsyncDocumentCursor[DocT]:
        return self.find_async(None, session=session)

    def find_one(self, predicate: Predicate, *, session: Any = None) -> Optional[DocT]:
        raw = self.collection.find_one(self.translator.translate(predicate), session=session)
        return self._to_model(raw)

    async def find_one_async(self, predicate: Predicate, *, session: Any = None) -> Optional[DocT]:
        raw = await self.async_collection.find_one(self.translator.translate(predicate), session=session)
        return self._to_model(raw)

    def find_by_id(self, key: KeyT, *, session: Any = None) -> Optional[DocT]:
        raw = self.collection.find_one({ID_FIELD: self.to_native_id(key)}, session=session)
        return self._to_model(raw)

    async def find_by_id_async(self, key: KeyT, *, session: Any = None) -> Optional[DocT]:
        raw = await self.async_collection.find_one({ID_FIELD: self.to_native_id(key)}, session=session)
        return self._to_model(raw)

    def count(self, predicate: Optional[Predicate] = None, *, session: Any = None) -> int:
        return self.collection.count_documents(self.translator.translate(predicate), session=session)

    async def count_async(self, predicate: Optional[Predicate] = None, *, session: Any = None) -> int:
        return await self.async_collection.count_documents(self.translator.translate(predicate), session=session)

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------
    def insert_one(self, document: DocT, *, session: Any = None) -> DocT:
        data = self._prepare_insert(document)
        try:
            self.collection.insert_one(data, session=session)
        except PyMongoDuplicateKeyError as exc:
            raise self._duplicate_key(data.get(ID_FIELD)) from exc
        document.id = data[ID_FIELD]
        return document

    async def insert_one_async(self, document: DocT, *, session: Any = None) -> DocT:
        data = self._prepare_insert(document)
        try:
            await self.async_collection.insert_one(data, session=session)
        except PyMongoDuplicateKeyError as exc:
            raise self._duplicate_key(data.get(ID_FIELD)) from exc
        document.id = data[ID_FIELD]
        return document

    def insert_many(
        self,
        documents: Iterable[DocT],
        options: Optional[InsertManyOptions] = None,
        *,
        session: Any = None,
    ) -> List[DocT]:
        options = options or InsertManyOptions()
        batch = list(documents)
        if not batch:
            return []
        payload = [self._prepare_insert(document) for document in batch]
        try:
            self.collection.insert_many(
                payload,
                ordered=options.ordered,
                bypass_document_validation=options.bypass_document_validation,
                session=session,
            )
        except BulkWriteError as exc:
            raise self._insert_many_error(exc, batch, payload, options.ordered) from exc
        self._assign_keys(batch, payload)
        return batch

    async def insert_many_async(
        self,
        documents: Iterable[DocT],
        options: Optional[InsertManyOptions] = None,
        *,
        session: Any = None,
    ) -> List[DocT]:
        options = options or InsertManyOptions()
        batch = list(documents)
        if not batch:
            return []
        payload = [self._prepare_insert(document) for document in batch]
        try:
            await self.async_collection.insert_many(
                payload,
                ordered=options.ordered,
                bypass_document_validation=options.bypass_document_validation,
                session=session,
            )
        except BulkWriteError as exc:
            raise self._insert_many_error(exc, batch, payload, options.ordered) from exc
        self._assign_keys(batch, payload)
        return batch

    # ------------------------------------------------------------------
    # Replace / delete
    # ------------------------------------------------------------------
    def find_one_and_replace(
        self,
        document: DocT,
        options: Optional[ReplaceOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        options = options or ReplaceOptions()
        key, data = self._replacement(document)
        try:
            raw = self.collection.find_one_and_replace(
                {ID_FIELD: key},
                data,
                upsert=options.upsert,
                return_document=options.return_document,
                session=session,
                **options.driver_kwargs(),
            )
        except PyMongoDuplicateKeyError as exc:
            raise self._duplicate_key(key) from exc
        return self._to_model(raw)

    async def find_one_and_replace_async(
        self,
        document: DocT,
        options: Optional[ReplaceOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        options = options or ReplaceOptions()
        key, data = self._replacement(document)
        try:
            raw = await self.async_collection.find_one_and_replace(
                {ID_FIELD: key},
                data,
                upsert=options.upsert,
                return_document=options.return_document,
                session=session,
                **options.driver_kwargs(),
            )
        except PyMongoDuplicateKeyError as exc:
            raise self._duplicate_key(key) from exc
        return self._to_model(raw)

    def _delete(self, query: dict[str, Any], options: Optional[DeleteOptions], session: Any) -> Optional[DocT]:
        options = options or DeleteOptions()
        if options.return_document or options.sort:
            sort = normalize_sort(options.sort) if options.sort else None
            raw = self.collection.find_one_and_delete(query, sort=sort, session=session)
            return self._to_model(raw) if options.return_document else None
        self.collection.delete_one(query, session=session)
        return None

    async def _delete_async(
        self, query: dict[str, Any], options: Optional[DeleteOptions], session: Any
    ) -> Optional[DocT]:
        options = options or DeleteOptions()
        if options.return_document or options.sort:
            sort = normalize_sort(options.sort) if options.sort else None
            raw = await self.async_collection.find_one_and_delete(query, sort=sort, session=session)
            return self._to_model(raw) if options.return_document else None
        await self.async_collection.delete_one(query, session=session)
        return None

    def delete_one(
        self,
        predicate: Predicate,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        return self._delete(self.translator.translate(predicate), options, session)

    async def delete_one_async(
        self,
        predicate: Predicate,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        return await self._delete_async(self.translator.translate(predicate), options, session)

    def delete_by_id(
        self,
        key: KeyT,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        return self._delete(self._delete_filter(key), options, session)

    async def delete_by_id_async(
        self,
        key: KeyT,
        options: Optional[DeleteOptions] = None,
        *,
        session: Any = None,
    ) -> Optional[DocT]:
        return await self._delete_async(self._delete_filter(key), options, session)

    def delete_many(self, predicate: Predicate, *, session: Any = None) -> int:
        result = self.collection.delete_many(self.translator.translate(predicate), session=session)
        return result.deleted_count

    async def delete_many_async(self, predicate: Predicate, *, session: Any = None) -> int:
        result = await self.async_collection.delete_many(self.translator.translate(predicate), session=session)
        return result.deleted_count

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    def with_transaction(self, body: Callable[[Any], ResultT]) -> ResultT:
        """
        Run ``body(session)`` inside a single transaction.

        Commits when ``body`` returns, aborts and re-raises the original
        exception otherwise. Transient conflicts are not retried here.
        """

        client = self.collection.database.client
        with client.start_session() as session:
            try:
                with session.start_transaction():
                    return body(session)
            except Exception as exc:
                logger.warning(f"Transaction on {self.collection_name} aborted: {exc!r}")
                raise

    async def with_transaction_async(self, body: Callable[[Any], Awaitable[ResultT]]) -> ResultT:
        client = self.async_collection.database.client
        async with await client.start_session() as session:
            try:
                async with session.start_transaction():
                    return await body(session)
            except Exception as exc:
                logger.warning(f"Transaction on {self.collection_name} aborted: {exc!r}")
                raise

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------
    def ensure_indexes(self) -> List[str]:
        """Create the indexes declared on the document class; returns their names."""

        names = []
        for spec in self.document_class.indexes:
            kwargs = dict(spec.options, unique=spec.unique)
            if spec.name:
                kwargs["name"] = spec.name
            names.append(self.collection.create_index(list(spec.keys), **kwargs))
        logger.debug(f"Ensured indexes on {self.collection_name}: {names}")
        return names

    async def ensure_indexes_async(self) -> List[str]:
        names = []
        for spec in self.document_class.indexes:
            kwargs = dict(spec.options, unique=spec.unique)
            if spec.name:
                kwargs["name"] = spec.name
            names.append(await self.async_collection.create_index(list(spec.keys), **kwargs))
        logger.debug(f"Ensured indexes on {self.collection_name}: {names}")
        return names
