"""Short-lived lookup maps for foreign-key style references.

A :class:`ReferenceMaps` is built once per search or page load and used for
O(1) translation while normalizing leads. Every lookup degrades to a
fallback value instead of raising.
"""

from dataclasses import dataclass, field
from typing import Iterable

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_STAGE_COLOUR = "#3f28cd"
NO_STAGE = "No Stage"

# Names used when lead_stages lacks a row for these ids
WELL_KNOWN_STAGES = {
    0: "Precommunication",
    1: "Created",
    35: "Meeting Irrelevant",
    51: "Client declined price offer",
    91: "Dropped (Spam/Irrelevant)",
}

# The search form offers "Created" for leads that never left stage 0
CREATED_STAGE_ALIAS = "created"


@dataclass(frozen=True)
class StageBadge:
    name: str
    colour: str = DEFAULT_STAGE_COLOUR


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str
    main_category_id: int | None = None
    main_category_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.main_category_name:
            return f"{self.name} ({self.main_category_name})"
        return self.name


@dataclass(frozen=True)
class LanguageRef:
    id: int
    name: str
    iso_code: str | None = None


def _as_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


@dataclass
class ReferenceMaps:
    """Lookup tables for categories, sources, stages, employees and languages."""

    categories: dict[int, CategoryRef] = field(default_factory=dict)
    main_categories: dict[int, str] = field(default_factory=dict)
    sources: dict[int, str] = field(default_factory=dict)
    stages: dict[int, StageBadge] = field(default_factory=dict)
    employees: dict[int, str] = field(default_factory=dict)
    languages: list[LanguageRef] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._category_by_display = {
            ref.display_name.lower(): ref.id for ref in self.categories.values()
        }
        self._employee_by_name = {
            name.strip().lower(): employee_id
            for employee_id, name in self.employees.items()
            if name
        }

    # Categories

    def category_display(self, category_id: int | None, fallback: str | None = None) -> str | None:
        """``"Subcategory (MainCategory)"`` for an id, else the raw fallback text."""
        ref = self.categories.get(category_id) if category_id is not None else None
        if ref is None:
            return fallback or None
        return ref.display_name

    def category_id_for(self, display: str) -> int | None:
        """Reverse lookup of a display name; a bare subcategory name also resolves."""
        if not display:
            return None
        key = display.strip().lower()
        if key in self._category_by_display:
            return self._category_by_display[key]
        for ref in self.categories.values():
            if ref.name.lower() == key:
                return ref.id
        return None

    def main_category(self, category_id: int | None) -> CategoryRef | None:
        if category_id is None:
            return None
        return self.categories.get(category_id)

    def main_category_name(self, category_id: int | None) -> str | None:
        ref = self.main_category(category_id)
        return ref.main_category_name if ref else None

    def main_category_id_for(self, name: str) -> int | None:
        wanted = name.strip().lower()
        for main_id, main_name in self.main_categories.items():
            if main_name and main_name.strip().lower() == wanted:
                return main_id
        return None

    # Sources

    def source_name(self, source_id: int | None, fallback: str | None = None) -> str | None:
        if source_id is not None and source_id in self.sources:
            return self.sources[source_id]
        return fallback or None

    def source_ids_for(self, values: Iterable[str]) -> set[int]:
        """Resolve source names (case-insensitive) or numeric strings to ids."""
        by_name = {name.strip().lower(): source_id for source_id, name in self.sources.items() if name}
        resolved = set()
        for value in values:
            numeric = _as_int(value)
            if numeric is not None:
                resolved.add(numeric)
                continue
            source_id = by_name.get(str(value).strip().lower())
            if source_id is None:
                logger.debug("Unknown lead source in filter", value=value)
                continue
            resolved.add(source_id)
        return resolved

    # Stages

    def stage_badge(self, stage: int | str | None) -> StageBadge:
        """Name and colour for a stage; unknown stages get a neutral badge."""
        stage_id = _as_int(stage)
        if stage_id is None:
            return StageBadge(NO_STAGE)
        badge = self.stages.get(stage_id)
        if badge is not None:
            return badge
        if stage_id in WELL_KNOWN_STAGES:
            return StageBadge(WELL_KNOWN_STAGES[stage_id])
        return StageBadge(NO_STAGE)

    def stage_ids_for(self, names: Iterable[str]) -> set[int]:
        """Resolve stage names to ids.

        Numeric strings are taken as ids and "Created" maps to stage 0.
        Names match the stage table case-insensitively, exact match first,
        then substring.
        """
        resolved = set()
        for name in names:
            numeric = _as_int(name)
            if numeric is not None:
                resolved.add(numeric)
                continue
            key = str(name).strip().lower()
            if key == CREATED_STAGE_ALIAS:
                resolved.add(0)
                continue

            exact = [stage_id for stage_id, badge in self.stages.items() if badge.name.lower() == key]
            if exact:
                resolved.update(exact)
                continue
            partial = [stage_id for stage_id, badge in self.stages.items() if key in badge.name.lower()]
            if partial:
                resolved.update(partial)
            else:
                logger.debug("Unknown stage in filter", value=name)
        return resolved

    # Employees

    def employee_name(self, value: int | str | None) -> str | None:
        """Display name from an id, a numeric string, or an already-resolved name."""
        if value is None:
            return None
        employee_id = _as_int(value)
        if employee_id is not None:
            return self.employees.get(employee_id, str(value))
        text = str(value).strip()
        return text or None

    def employee_id_for(self, value: int | str | None) -> int | None:
        if value is None:
            return None
        employee_id = _as_int(value)
        if employee_id is not None:
            return employee_id
        return self._employee_by_name.get(str(value).strip().lower())

    # Languages

    def language_name(self, language_id: int | None, fallback: str | None = None) -> str | None:
        for ref in self.languages:
            if ref.id == language_id:
                return ref.name
        return fallback or None

    def language_ids_for(self, names: Iterable[str]) -> set[int]:
        """Ids of languages whose name or ISO code is in ``names`` (case-insensitive)."""
        wanted = {str(name).strip().lower() for name in names if name}
        return {
            ref.id
            for ref in self.languages
            if ref.name.lower() in wanted or (ref.iso_code and ref.iso_code.lower() in wanted)
        }
