"""Translate predicate expressions into MongoDB filter and projection documents."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Callable, Optional

from db_core.typing import MongoFilter

from .errors import UntranslatableExpressionError
from .expressions import (
    COMPARISON_OPERATORS,
    And,
    Comparison,
    Contains,
    Exists,
    Expression,
    Matches,
    MatchAll,
    Not,
    Or,
    Projection,
    StartsWith,
)

ID_FIELD = "_id"


class MongoFilterTranslator:
    """
    Turns ``Expression`` trees into MongoDB query documents.

    Mappings are treated as store-native filters and passed through untouched.
    Values compared against ``_id`` go through ``id_converter`` so string keys
    can be matched against ``ObjectId`` identifiers.
    """

    def __init__(self, id_converter: Optional[Callable[[Any], Any]] = None):
        self._id_converter = id_converter

    def translate(self, predicate: Any) -> MongoFilter:
        if predicate is None:
            return {}
        if isinstance(predicate, Mapping):
            return dict(predicate)
        if isinstance(predicate, Expression):
            return self._visit(predicate)
        raise UntranslatableExpressionError(
            f"Cannot translate {type(predicate).__name__} into a MongoDB filter; "
            "build predicates from fields(...) or F(...)"
        )

    def _visit(self, node: Expression) -> dict[str, Any]:
        if isinstance(node, MatchAll):
            return {}
        if isinstance(node, Comparison):
            return self._comparison(node)
        if isinstance(node, StartsWith):
            return {node.path: {"$regex": "^" + re.escape(node.prefix)}}
        if isinstance(node, Contains):
            return {node.path: {"$regex": re.escape(node.text)}}
        if isinstance(node, Matches):
            clause: dict[str, Any] = {"$regex": node.pattern}
            if node.options:
                clause["$options"] = node.options
            return {node.path: clause}
        if isinstance(node, Exists):
            return {node.path: {"$exists": node.present}}
        if isinstance(node, And):
            return {"$and": [self._visit(operand) for operand in node.operands]}
        if isinstance(node, Or):
            return {"$or": [self._visit(operand) for operand in node.operands]}
        if isinstance(node, Not):
            # $not only applies to operator expressions; $nor negates anything.
            return {"$nor": [self._visit(node.operand)]}
        raise UntranslatableExpressionError(f"Unsupported expression node {type(node).__name__}")

    def _comparison(self, node: Comparison) -> dict[str, Any]:
        if node.op not in COMPARISON_OPERATORS:
            raise UntranslatableExpressionError(f"Unsupported comparison operator {node.op!r}")
        if node.op in ("in", "nin"):
            value: Any = [self._value(node.path, item) for item in node.value]
        else:
            value = self._value(node.path, node.value)
        if node.op == "eq" and not isinstance(value, Mapping):
            return {node.path: value}
        return {node.path: {f"${node.op}": value}}

    def _value(self, path: str, value: Any) -> Any:
        if path == ID_FIELD and value is not None and self._id_converter is not None:
            return self._id_converter(value)
        return value


def translate_projection(projection: Projection) -> dict[str, int]:
    spec = {path: 1 for path in projection.paths}
    if not projection.include_id and ID_FIELD not in spec:
        spec[ID_FIELD] = 0
    return spec
