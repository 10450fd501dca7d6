"""Evaluate predicates against in-memory records.

Records may be mappings or objects with attributes. Comparison against a
missing value is false, mirroring SQL NULL semantics for ``=``, ``<>`` and
range operators.
"""

from collections.abc import Mapping
from typing import Any

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


def _value(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def matches(pred: Predicate, record: Any) -> bool:
    """True when ``record`` satisfies ``pred``."""
    if pred is Everything:
        return True
    if pred is Nothing:
        return False

    if isinstance(pred, And):
        return all(matches(part, record) for part in pred.parts)
    if isinstance(pred, Or):
        return any(matches(part, record) for part in pred.parts)

    value = _value(record, pred.field)
    if isinstance(pred, IsNull):
        return value is None
    if isinstance(pred, NotNull):
        return value is not None
    if value is None:
        return False

    if isinstance(pred, Eq):
        return value == pred.value
    if isinstance(pred, Ne):
        return value != pred.value
    if isinstance(pred, In):
        return value in pred.values
    if isinstance(pred, Gte):
        return value >= pred.value
    if isinstance(pred, Lte):
        return value <= pred.value

    raise TypeError(f"Unsupported predicate: {pred!r}")


def filter_records(pred: Predicate, records: list) -> list:
    """Records satisfying ``pred``, in their original order."""
    return [record for record in records if matches(pred, record)]
