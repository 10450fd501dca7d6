"""Display-only sublead numbering.

Subleads (leads with a ``master_id``) are shown as ``<master>/2``,
``<master>/3``, ... in ascending id order, and a master with at least one
sublead in the same result set is shown as ``<master>/1``. The suffixes are
recomputed from whatever set of leads is passed in, so the same lead can
get a different suffix under a different filter. They are never stored.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from lawcrm.models.lead import STAGE_SUCCESS

FIRST_SUBLEAD_SUFFIX = 2
MASTER_SUFFIX = 1


@dataclass(frozen=True)
class NumberingInput:
    id: int
    master_id: int | None
    lead_number: str | None
    base_number: str


def new_lead_base_number(lead) -> str:
    return str(lead.lead_number or lead.manual_id or lead.id)


def legacy_lead_base_number(lead) -> str:
    return str(lead.manual_id or lead.lead_number or lead.id)


def numbering_inputs(leads: Iterable, base_number) -> list[NumberingInput]:
    """Build inputs from ORM rows using the schema's base number rule."""
    return [
        NumberingInput(
            id=lead.id,
            master_id=lead.master_id,
            lead_number=lead.lead_number,
            base_number=base_number(lead),
        )
        for lead in leads
    ]


def is_preformatted(lead_number: str | None) -> bool:
    return bool(lead_number) and "/" in lead_number


def sublead_suffixes(items: Iterable[NumberingInput]) -> tuple[dict[int, int], set[int]]:
    """Suffix per sublead id, and the master ids that have subleads in the set."""
    groups: dict[int, list[int]] = defaultdict(list)
    for item in items:
        if item.master_id is not None:
            groups[item.master_id].append(item.id)

    suffixes = {}
    for sub_ids in groups.values():
        for offset, sub_id in enumerate(sorted(sub_ids)):
            suffixes[sub_id] = FIRST_SUBLEAD_SUFFIX + offset
    return suffixes, set(groups)


def assign_display_numbers(items: Iterable[NumberingInput]) -> dict[int, str]:
    """Display number for every lead in ``items``, keyed by lead id."""
    items = list(items)
    suffixes, masters = sublead_suffixes(items)
    base_by_id = {item.id: item.base_number for item in items}

    numbers = {}
    for item in items:
        if is_preformatted(item.lead_number):
            numbers[item.id] = item.lead_number
        elif item.master_id is not None:
            prefix = base_by_id.get(item.master_id, str(item.master_id))
            numbers[item.id] = f"{prefix}/{suffixes.get(item.id, FIRST_SUBLEAD_SUFFIX)}"
        elif item.id in masters and "/" not in item.base_number:
            numbers[item.id] = f"{item.base_number}/{MASTER_SUFFIX}"
        else:
            numbers[item.id] = item.base_number
    return numbers


def apply_success_prefix(number: str, stage: int | None) -> str:
    """Legacy leads that reached stage 100 are shown with a ``C`` prefix."""
    if stage == STAGE_SUCCESS and not number.startswith("C"):
        return f"C{number}"
    return number
