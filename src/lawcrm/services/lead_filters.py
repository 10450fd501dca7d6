"""Translate one :class:`LeadFilter` into a predicate per lead schema.

The two schemas store equivalent facts in different columns, so every
filter field has a rule for ``leads`` and a rule for ``leads_lead``. Empty
multi-value fields never constrain. The source filter always intersects
with the caller's allow-list and fails closed.
"""

from datetime import date, datetime, time, timezone
from typing import Iterable

import structlog

from lawcrm.models.lead import LEGACY_STATUS_ACTIVE, LEGACY_STATUS_INACTIVE
from lawcrm.query import (
    Eq,
    Gte,
    IsNull,
    Lte,
    NotNull,
    Nothing,
    Predicate,
    and_,
    in_,
    or_,
)
from lawcrm.schemas.lead import LeadFilter
from lawcrm.services.references import ReferenceMaps

logger = structlog.get_logger(__name__)

LANGUAGE_UNSET = "n/a"

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "not active"

# Canonical language name for each accepted spelling
LANGUAGE_ALIASES = {
    "en": "English",
    "english": "English",
    "he": "Hebrew",
    "hebrew": "Hebrew",
    "de": "German",
    "german": "German",
    "fr": "French",
    "french": "French",
    "es": "Spanish",
    "spanish": "Spanish",
    "ru": "Russian",
    "russian": "Russian",
    "ar": "Arabic",
    "arabic": "Arabic",
    "pt": "Portuguese",
    "por": "Portuguese",
    "portuguese": "Portuguese",
}

# filter field -> (new-lead text column, id column)
ROLE_COLUMNS = {
    "scheduler": ("scheduler", "meeting_scheduler_id"),
    "manager": ("manager", "meeting_manager_id"),
    "lawyer": ("lawyer", "meeting_lawyer_id"),
    "expert": ("expert", "expert_id"),
    "closer": ("closer", "closer_id"),
    "case_handler": ("handler", "case_handler_id"),
}


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def expand_languages(values: Iterable[str]) -> set[str]:
    """Every spelling a stored language may use: as given, upper-cased, and code/name forms."""
    expanded: set[str] = set()
    for value in values:
        text = value.strip()
        if not text:
            continue
        expanded.add(text)
        expanded.add(text.upper())
        canonical = LANGUAGE_ALIASES.get(text.lower())
        if canonical is None:
            continue
        expanded.add(canonical)
        expanded.update(
            alias.upper() for alias, name in LANGUAGE_ALIASES.items()
            if name == canonical and len(alias) <= 3
        )
    return expanded


def split_language_values(values: Iterable[str]) -> tuple[bool, list[str]]:
    """(N/A selected, concrete languages)."""
    include_unset = False
    concrete = []
    for value in values:
        if value.strip().lower() == LANGUAGE_UNSET:
            include_unset = True
        else:
            concrete.append(value)
    return include_unset, concrete


def _date_predicate(filters: LeadFilter, column: str) -> Predicate | None:
    parts = []
    if filters.from_date:
        parts.append(Gte(column, start_of_day(filters.from_date)))
    if filters.to_date:
        parts.append(Lte(column, end_of_day(filters.to_date)))
    return and_(*parts) if parts else None


def _category_predicate(values: list[str], refs: ReferenceMaps) -> Predicate | None:
    if not values:
        return None
    ids = []
    names = []
    for value in values:
        category_id = refs.category_id_for(value)
        if category_id is not None:
            ids.append(category_id)
        else:
            names.append(value.split(" (")[0].strip())
    return or_(
        in_("category_id", ids) if ids else None,
        in_("category", names) if names else None,
    )


def _source_predicate(
    values: list[str], refs: ReferenceMaps, allowed_source_ids: Iterable[int]
) -> Predicate:
    allowed = set(allowed_source_ids)
    if not allowed:
        logger.info("Empty source allow-list, returning no leads")
        return Nothing
    if not values:
        return in_("source_id", sorted(allowed))

    selected = refs.source_ids_for(values) & allowed
    if not selected:
        logger.info("Selected sources are outside the allow-list", selected=values)
        return Nothing
    return in_("source_id", sorted(selected))


def _stage_predicate(values: list[str], refs: ReferenceMaps) -> Predicate | None:
    if not values:
        return None
    stage_ids = refs.stage_ids_for(values)
    if not stage_ids:
        logger.warning("No stage matched the filter, ignoring stage constraint", stages=values)
        return None
    return in_("stage", sorted(stage_ids))


def _status_values(values: list[str]) -> tuple[bool, bool]:
    wants_active = wants_inactive = False
    for value in values:
        key = value.strip().lower()
        if key == STATUS_ACTIVE:
            wants_active = True
        elif key == STATUS_INACTIVE:
            wants_inactive = True
        else:
            logger.warning("Unknown status filter value ignored", status=value)
    return wants_active, wants_inactive


def _role_ids(values: list[str], refs: ReferenceMaps) -> list[int]:
    ids = []
    for value in values:
        employee_id = refs.employee_id_for(value)
        if employee_id is not None:
            ids.append(employee_id)
    return ids


def build_new_lead_predicate(
    filters: LeadFilter, refs: ReferenceMaps, allowed_source_ids: Iterable[int]
) -> Predicate:
    """Predicate over ``leads`` for the given filters."""
    parts: list[Predicate | None] = [
        _date_predicate(filters, "created_at"),
        _category_predicate(filters.category, refs),
        _source_predicate(filters.source, refs, allowed_source_ids),
        _stage_predicate(filters.stage, refs),
    ]

    if filters.language:
        include_unset, concrete = split_language_values(filters.language)
        unset = and_(
            IsNull("language_id"),
            or_(IsNull("language"), in_("language", ["", "N/A"])),
        ) if include_unset else None
        matched = None
        if concrete:
            expanded = expand_languages(concrete)
            matched = or_(
                in_("language", sorted(expanded)),
                in_("language_id", sorted(refs.language_ids_for(expanded))),
            )
        parts.append(or_(unset, matched))

    if filters.status:
        wants_active, wants_inactive = _status_values(filters.status)
        if wants_active or wants_inactive:
            parts.append(or_(
                IsNull("unactivated_at") if wants_active else None,
                NotNull("unactivated_at") if wants_inactive else None,
            ))

    if filters.topic:
        parts.append(in_("topic", filters.topic))

    if filters.eligibility_determined_only:
        parts.append(Eq("eligible", True))

    for field_name, (text_column, id_column) in ROLE_COLUMNS.items():
        values = getattr(filters, field_name)
        if not values:
            continue
        ids = _role_ids(values, refs)
        parts.append(or_(
            in_(id_column, ids) if ids else None,
            in_(text_column, values),
        ))

    return and_(*parts)


def build_legacy_lead_predicate(
    filters: LeadFilter, refs: ReferenceMaps, allowed_source_ids: Iterable[int]
) -> Predicate:
    """Predicate over ``leads_lead`` for the given filters."""
    parts: list[Predicate | None] = [
        _date_predicate(filters, "cdate"),
        _category_predicate(filters.category, refs),
        _source_predicate(filters.source, refs, allowed_source_ids),
        _stage_predicate(filters.stage, refs),
    ]

    if filters.language:
        include_unset, concrete = split_language_values(filters.language)
        matched = None
        if concrete:
            language_ids = refs.language_ids_for(expand_languages(concrete))
            matched = in_("language_id", sorted(language_ids))
        parts.append(or_(IsNull("language_id") if include_unset else None, matched))

    if filters.status:
        wants_active, wants_inactive = _status_values(filters.status)
        if wants_active or wants_inactive:
            parts.append(or_(
                or_(Eq("status", LEGACY_STATUS_ACTIVE), IsNull("status")) if wants_active else None,
                Eq("status", LEGACY_STATUS_INACTIVE) if wants_inactive else None,
            ))

    if filters.topic:
        parts.append(in_("topic", filters.topic))

    if filters.eligibility_determined_only:
        parts.append(Eq("eligibile", "true"))

    for field_name, (_, id_column) in ROLE_COLUMNS.items():
        values = getattr(filters, field_name)
        if not values:
            continue
        parts.append(in_(id_column, _role_ids(values, refs)))

    return and_(*parts)
