"""Translate predicates into SQLAlchemy expressions."""

from typing import Any

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from lawcrm.query.predicates import (
    And,
    Eq,
    Gte,
    In,
    IsNull,
    Lte,
    Ne,
    NotNull,
    Nothing,
    Everything,
    Or,
    Predicate,
)


def _column(model: Any, field: str):
    try:
        return getattr(model, field)
    except AttributeError:
        raise ValueError(f"{model.__name__} has no column '{field}'") from None


def compile_predicate(pred: Predicate, model: Any) -> ColumnElement[bool]:
    """Build a WHERE clause for ``model`` from a predicate tree."""
    if pred is Everything:
        return true()
    if pred is Nothing:
        return false()

    if isinstance(pred, Eq):
        return _column(model, pred.field) == pred.value
    if isinstance(pred, Ne):
        return _column(model, pred.field) != pred.value
    if isinstance(pred, In):
        return _column(model, pred.field).in_(pred.values)
    if isinstance(pred, IsNull):
        return _column(model, pred.field).is_(None)
    if isinstance(pred, NotNull):
        return _column(model, pred.field).is_not(None)
    if isinstance(pred, Gte):
        return _column(model, pred.field) >= pred.value
    if isinstance(pred, Lte):
        return _column(model, pred.field) <= pred.value
    if isinstance(pred, And):
        return and_(*(compile_predicate(part, model) for part in pred.parts))
    if isinstance(pred, Or):
        return or_(*(compile_predicate(part, model) for part in pred.parts))

    raise TypeError(f"Unsupported predicate: {pred!r}")
