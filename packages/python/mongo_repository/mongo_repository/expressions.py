"""Typed predicate expressions over document fields.

Predicates are small immutable trees built from field references::

    f = fields(User)
    predicate = (f.name == "a") | f.email.startswith("admin@")

Combine predicates with ``&``, ``|`` and ``~`` (Python's ``and`` / ``or``
cannot be overloaded, so using them raises ``TypeError``). Trees are
translated into store filters by ``translation.MongoFilterTranslator``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Tuple, Type, Union

from pydantic import BaseModel

from .errors import InvalidArgumentError


class Expression:
    """Base class of all predicate nodes."""

    def __and__(self, other: "Expression") -> "Expression":
        return and_(self, other)

    def __or__(self, other: "Expression") -> "Expression":
        return or_(self, other)

    def __invert__(self) -> "Expression":
        return Not(self)

    def __bool__(self) -> bool:
        raise TypeError("Predicates have no truth value; combine them with '&', '|' or '~'")


@dataclass(frozen=True)
class MatchAll(Expression):
    """Matches every document."""


@dataclass(frozen=True)
class Comparison(Expression):
    op: str
    path: str
    value: Any


@dataclass(frozen=True)
class StartsWith(Expression):
    path: str
    prefix: str


@dataclass(frozen=True)
class Contains(Expression):
    path: str
    text: str


@dataclass(frozen=True)
class Matches(Expression):
    path: str
    pattern: str
    options: str = ""


@dataclass(frozen=True)
class Exists(Expression):
    path: str
    present: bool = True


@dataclass(frozen=True)
class And(Expression):
    operands: Tuple[Expression, ...]


@dataclass(frozen=True)
class Or(Expression):
    operands: Tuple[Expression, ...]


@dataclass(frozen=True)
class Not(Expression):
    operand: Expression


COMPARISON_OPERATORS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "nin")


class FieldPath:
    """Reference to a (possibly nested) document field.

    Comparison operators build ``Comparison`` nodes instead of returning
    booleans, so field paths are deliberately unhashable.
    """

    __slots__ = ("path",)

    def __init__(self, path: str):
        if not path:
            raise InvalidArgumentError("Field path must not be empty")
        object.__setattr__(self, "path", path)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("FieldPath is immutable")

    def __repr__(self) -> str:
        return f"FieldPath({self.path!r})"

    def __getattr__(self, name: str) -> "FieldPath":
        if name.startswith("_"):
            raise AttributeError(name)
        return FieldPath(f"{self.path}.{name}")

    def __getitem__(self, name: Union[str, int]) -> "FieldPath":
        return FieldPath(f"{self.path}.{name}")

    def __eq__(self, value: Any) -> Comparison:  # type: ignore[override]
        return Comparison("eq", self.path, value)

    def __ne__(self, value: Any) -> Comparison:  # type: ignore[override]
        return Comparison("ne", self.path, value)

    def __gt__(self, value: Any) -> Comparison:
        return Comparison("gt", self.path, value)

    def __ge__(self, value: Any) -> Comparison:
        return Comparison("gte", self.path, value)

    def __lt__(self, value: Any) -> Comparison:
        return Comparison("lt", self.path, value)

    def __le__(self, value: Any) -> Comparison:
        return Comparison("lte", self.path, value)

    __hash__ = None  # type: ignore[assignment]

    def is_in(self, values: Iterable[Any]) -> Comparison:
        return Comparison("in", self.path, tuple(values))

    def not_in(self, values: Iterable[Any]) -> Comparison:
        return Comparison("nin", self.path, tuple(values))

    def startswith(self, prefix: str) -> StartsWith:
        return StartsWith(self.path, prefix)

    def contains(self, text: str) -> Contains:
        return Contains(self.path, text)

    def matches(self, pattern: str, options: str = "") -> Matches:
        return Matches(self.path, pattern, options)

    def exists(self, present: bool = True) -> Exists:
        return Exists(self.path, present)


def F(path: str) -> FieldPath:
    """Untyped field reference, e.g. ``F("address.city") == "Berlin"``."""

    return FieldPath(path)


class ModelFields:
    """Field references checked against a pydantic model's declared fields."""

    def __init__(self, model: Type[BaseModel]):
        self._model = model

    def __getattr__(self, name: str) -> FieldPath:
        if name.startswith("_"):
            raise AttributeError(name)
        info = self._model.model_fields.get(name)
        if info is None:
            raise InvalidArgumentError(f"{self._model.__name__} has no field {name!r}")
        return FieldPath(info.alias or name)

    def __getitem__(self, name: str) -> FieldPath:
        return getattr(self, name)


def fields(model: Type[BaseModel]) -> ModelFields:
    """Typed field references for ``model``; ``id`` resolves to ``_id``."""

    return ModelFields(model)


def and_(*operands: Expression) -> Expression:
    flat: list[Expression] = []
    for operand in operands:
        if isinstance(operand, MatchAll):
            continue
        if isinstance(operand, And):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if not flat:
        return MatchAll()
    if len(flat) == 1:
        return flat[0]
    return And(tuple(flat))


def or_(*operands: Expression) -> Expression:
    if not operands:
        raise InvalidArgumentError("or_() needs at least one operand")
    flat: list[Expression] = []
    for operand in operands:
        if isinstance(operand, MatchAll):
            return MatchAll()
        if isinstance(operand, Or):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if len(flat) == 1:
        return flat[0]
    return Or(tuple(flat))


def not_(operand: Expression) -> Expression:
    return Not(operand)


@dataclass(frozen=True)
class Projection:
    """Server-side field projection; results come back as plain mappings."""

    paths: Tuple[str, ...]
    include_id: bool = True


def project(*references: Union[FieldPath, str], include_id: bool = True) -> Projection:
    if not references:
        raise InvalidArgumentError("project() needs at least one field")
    paths = tuple(ref.path if isinstance(ref, FieldPath) else ref for ref in references)
    return Projection(paths, include_id)
