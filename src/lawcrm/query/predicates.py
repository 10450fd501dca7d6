"""Typed filter predicates.

Filters are built once as plain predicate objects and handed to an adapter
(:mod:`lawcrm.query.compiler` for SQLAlchemy, :mod:`lawcrm.query.memory` for
in-process evaluation). Field names are attribute names on the target model.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Union


@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Ne:
    field: str
    value: Any


@dataclass(frozen=True)
class In:
    field: str
    values: tuple


@dataclass(frozen=True)
class IsNull:
    field: str


@dataclass(frozen=True)
class NotNull:
    field: str


@dataclass(frozen=True)
class Gte:
    field: str
    value: Any


@dataclass(frozen=True)
class Lte:
    field: str
    value: Any


@dataclass(frozen=True)
class And:
    parts: tuple


@dataclass(frozen=True)
class Or:
    parts: tuple


class _Everything:
    """Matches every row."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Everything"


class _Nothing:
    """Matches no row."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Nothing"


Everything = _Everything()
Nothing = _Nothing()

Predicate = Union[Eq, Ne, In, IsNull, NotNull, Gte, Lte, And, Or, _Everything, _Nothing]


def and_(*preds: Predicate | None) -> Predicate:
    """Conjunction. ``None``/``Everything`` parts drop out, any ``Nothing`` wins."""
    parts = []
    for pred in preds:
        if pred is None or pred is Everything:
            continue
        if pred is Nothing:
            return Nothing
        if isinstance(pred, And):
            parts.extend(pred.parts)
        else:
            parts.append(pred)

    if not parts:
        return Everything
    if len(parts) == 1:
        return parts[0]
    return And(tuple(parts))


def or_(*preds: Predicate | None) -> Predicate:
    """Disjunction. ``Nothing`` parts drop out, any ``Everything`` wins."""
    parts = []
    for pred in preds:
        if pred is None or pred is Nothing:
            continue
        if pred is Everything:
            return Everything
        if isinstance(pred, Or):
            parts.extend(pred.parts)
        else:
            parts.append(pred)

    if not parts:
        return Nothing
    if len(parts) == 1:
        return parts[0]
    return Or(tuple(parts))


def in_(field: str, values: Iterable[Any]) -> Predicate:
    """Membership test; an empty value set matches nothing."""
    unique = tuple(dict.fromkeys(values))
    if not unique:
        return Nothing
    if len(unique) == 1:
        return Eq(field, unique[0])
    return In(field, unique)
