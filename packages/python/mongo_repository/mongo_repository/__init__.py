"""Generic MongoDB document repository with typed predicates.

    from bson import ObjectId
    from mongo_repository import Document, MongoRepository, fields

    class User(Document[ObjectId]):
        name: str

    users = MongoRepository(User)
    f = fields(User)
    users.insert_one(User(name="a"))
    matches = users.filter_by(f.name == "a")
"""

from .contract import DocumentRepository
from .cursor import AsyncDocumentCursor, DocumentCursor
from .errors import (
    DuplicateKeyError,
    InsertFailure,
    InsertManyError,
    InvalidArgumentError,
    InvalidIdError,
    RepositoryError,
    UntranslatableExpressionError,
)
from .expressions import Expression, F, FieldPath, Projection, and_, fields, not_, or_, project
from .models import Document, IndexSpec
from .options import DeleteOptions, InsertManyOptions, ReplaceOptions
from .queryable import Query
from .repository import MongoRepository
from .translation import MongoFilterTranslator

__all__ = [
    "Document",
    "IndexSpec",
    "DocumentRepository",
    "MongoRepository",
    "Query",
    "DocumentCursor",
    "AsyncDocumentCursor",
    "Expression",
    "FieldPath",
    "F",
    "fields",
    "and_",
    "or_",
    "not_",
    "Projection",
    "project",
    "MongoFilterTranslator",
    "InsertManyOptions",
    "ReplaceOptions",
    "DeleteOptions",
    "RepositoryError",
    "InvalidArgumentError",
    "InvalidIdError",
    "UntranslatableExpressionError",
    "DuplicateKeyError",
    "InsertFailure",
    "InsertManyError",
]
