"""Explicit option structures for write operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pymongo import ReturnDocument

from db_core.typing import SortSpec


@dataclass(frozen=True)
class InsertManyOptions:
    """
    ordered=True stops at the first rejected document; ordered=False attempts
    every document and reports all failures together.
    """

    ordered: bool = True
    bypass_document_validation: bool = False


@dataclass(frozen=True)
class ReplaceOptions:
    return_original: bool = False
    upsert: bool = False
    bypass_document_validation: bool = False

    @property
    def return_document(self) -> ReturnDocument:
        return ReturnDocument.BEFORE if self.return_original else ReturnDocument.AFTER

    def driver_kwargs(self) -> dict:
        if self.bypass_document_validation:
            return {"bypass_document_validation": True}
        return {}


@dataclass(frozen=True)
class DeleteOptions:
    """
    ``sort`` picks which document goes when several match; with
    ``return_document=False`` the deleted snapshot is discarded.
    """

    sort: Optional[SortSpec] = None
    return_document: bool = True
