"""Filter predicates and their adapters."""

from lawcrm.query.compiler import compile_predicate
from lawcrm.query.memory import filter_records, matches
from lawcrm.query.predicates import (
    And,
    Eq,
    Everything,
    Gte,
    In,
    IsNull,
    Lte,
    Ne,
    NotNull,
    Nothing,
    Or,
    Predicate,
    and_,
    in_,
    or_,
)

__all__ = [
    "And",
    "Eq",
    "Everything",
    "Gte",
    "In",
    "IsNull",
    "Lte",
    "Ne",
    "NotNull",
    "Nothing",
    "Or",
    "Predicate",
    "and_",
    "compile_predicate",
    "filter_records",
    "in_",
    "matches",
    "or_",
]
