"""Dual-schema lead search pipeline.

filters -> reference maps -> one predicate per schema -> concurrent queries
-> per-schema numbering -> normalization -> merged list, newest first.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lawcrm.config import settings
from lawcrm.exceptions import LeadQueryError
from lawcrm.models.employee import User
from lawcrm.models.lead import LegacyLead, NewLead
from lawcrm.repositories.lead_repo import DualSourceLeadRepository
from lawcrm.repositories.reference_repo import ReferenceRepository
from lawcrm.schemas.lead import LeadFilter, NormalizedLead
from lawcrm.services.generation import RequestGenerationGuard
from lawcrm.services.lead_filters import build_legacy_lead_predicate, build_new_lead_predicate
from lawcrm.services.normalizer import normalize_legacy_lead, normalize_new_lead
from lawcrm.services.numbering import (
    apply_success_prefix,
    assign_display_numbers,
    legacy_lead_base_number,
    new_lead_base_number,
    numbering_inputs,
)
from lawcrm.services.references import ReferenceMaps

logger = structlog.get_logger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(lead: NormalizedLead) -> datetime:
    if lead.created_at is None:
        return _OLDEST
    if lead.created_at.tzinfo is None:
        return lead.created_at.replace(tzinfo=timezone.utc)
    return lead.created_at


def sort_newest_first(leads: Iterable[NormalizedLead]) -> list[NormalizedLead]:
    return sorted(leads, key=_created_key, reverse=True)


def normalize_results(
    new_leads: list[NewLead],
    legacy_leads: list[LegacyLead],
    refs: ReferenceMaps,
    success_prefix: bool = False,
) -> list[NormalizedLead]:
    """Number each schema separately, normalize, and merge newest first.

    Ids overlap between the two tables, so sublead grouping never mixes
    schemas. ``success_prefix`` marks legacy leads at stage 100 with ``C``.
    """
    new_numbers = assign_display_numbers(numbering_inputs(new_leads, new_lead_base_number))
    legacy_numbers = assign_display_numbers(numbering_inputs(legacy_leads, legacy_lead_base_number))

    normalized = [normalize_new_lead(lead, refs, new_numbers[lead.id]) for lead in new_leads]
    for lead in legacy_leads:
        number = legacy_numbers[lead.id]
        if success_prefix:
            number = apply_success_prefix(number, lead.stage)
        normalized.append(normalize_legacy_lead(lead, refs, number))
    return sort_newest_first(normalized)


@dataclass
class LeadSearchResult:
    leads: list[NormalizedLead] = field(default_factory=list)
    errors: list[LeadQueryError] = field(default_factory=list)


class LeadSearchService:
    """Searches both lead schemas on behalf of one user."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        guard: RequestGenerationGuard,
        limit: int | None = None,
    ):
        self.session_maker = session_maker
        self.guard = guard
        self.limit = limit or settings.search_result_limit

    async def search(self, filters: LeadFilter, user: User, view_key: str = "default") -> LeadSearchResult:
        """Run a search.

        Args:
            filters: Filter values shared by both schemas.
            user: Caller; their source allow-list bounds every query.
            view_key: Identifies the result slot. A newer search for the same
                user and key makes this one stale.

        Returns:
            Normalized leads plus one error per failed schema.

        Raises:
            StaleResponseError: A newer search for the same slot was issued.
        """
        key = f"{user.id}:{view_key}"
        token = self.guard.issue(key)

        async with self.session_maker() as session:
            refs = await ReferenceRepository(session).load()

        allowed = user.allowed_source_ids
        new_predicate = build_new_lead_predicate(filters, refs, allowed)
        legacy_predicate = build_legacy_lead_predicate(filters, refs, allowed)
        logger.debug("Built lead predicates", new=repr(new_predicate), legacy=repr(legacy_predicate))

        result = await DualSourceLeadRepository(self.session_maker).search(
            new_predicate, legacy_predicate, self.limit
        )
        self.guard.ensure_current(key, token)

        leads = normalize_results(result.new_leads, result.legacy_leads, refs)
        logger.info(
            "Lead search finished",
            user_id=str(user.id),
            total=len(leads),
            failed_sources=sorted(result.failed_sources),
        )
        return LeadSearchResult(leads=leads, errors=result.errors)
