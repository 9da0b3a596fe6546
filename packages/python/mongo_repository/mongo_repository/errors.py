"""Error taxonomy for the document repository.

Absence of a document is never an error: point lookups return ``None``.
Driver failures (``pymongo.errors.PyMongoError``) other than duplicate keys
propagate unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence

DUPLICATE_KEY_CODE = 11000


class RepositoryError(Exception):
    """Base class for errors raised by the repository layer."""


class InvalidArgumentError(RepositoryError, ValueError):
    """Raised when an argument cannot be translated for the store."""


class InvalidIdError(InvalidArgumentError):
    """Raised when a key cannot be converted to the store's native id."""

    def __init__(self, key: Any, expected: str):
        super().__init__(f"{key!r} is not a valid {expected} identifier")
        self.key = key
        self.expected = expected


class UntranslatableExpressionError(InvalidArgumentError):
    """Raised when a predicate cannot be turned into a store filter."""


class DuplicateKeyError(RepositoryError):
    """Raised when an insert or upsert collides with an existing unique key."""

    def __init__(self, message: str, key: Any = None):
        super().__init__(message)
        self.key = key


@dataclass(frozen=True)
class InsertFailure:
    """A single rejected document of an ``insert_many`` batch."""

    index: int
    code: int
    message: str

    @property
    def is_duplicate_key(self) -> bool:
        return self.code == DUPLICATE_KEY_CODE


class InsertManyError(RepositoryError):
    """Raised when a batch insert rejects one or more documents.

    ``inserted_ids`` lists the keys that were written, in input order.
    ``failures`` lists the rejected positions. With ordered inserts there is
    exactly one failure and nothing after it was attempted.
    """

    def __init__(self, inserted_ids: Sequence[Any], failures: Sequence[InsertFailure], ordered: bool):
        self.inserted_ids: List[Any] = list(inserted_ids)
        self.failures: List[InsertFailure] = list(failures)
        self.ordered = ordered
        super().__init__(
            f"insert_many rejected {len(self.failures)} document(s) "
            f"({len(self.inserted_ids)} inserted, ordered={ordered})"
        )

    @property
    def duplicate_key_failures(self) -> List[InsertFailure]:
        return [failure for failure in self.failures if failure.is_duplicate_key]
