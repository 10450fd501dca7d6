"""Lookup of a single lead by the number shown to users."""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.cache import TTLCache
from lawcrm.exceptions import NotFoundError
from lawcrm.models.employee import User
from lawcrm.repositories.lead_repo import LeadRepository
from lawcrm.repositories.reference_repo import ReferenceRepository
from lawcrm.schemas.lead import NormalizedLead
from lawcrm.services.normalizer import normalize_legacy_lead, normalize_new_lead
from lawcrm.services.numbering import (
    assign_display_numbers,
    legacy_lead_base_number,
    new_lead_base_number,
    numbering_inputs,
)

logger = structlog.get_logger(__name__)


class LeadDetailsService:
    """Resolves a lead number to one normalized lead.

    New leads are tried first, by ``manual_id`` and then ``lead_number``;
    legacy leads by numeric id (any ``/N`` suffix is ignored). Hits are cached
    for all callers, so the source allow-list is checked on every call.
    """

    def __init__(self, db: AsyncSession, cache: TTLCache[NormalizedLead]):
        self.db = db
        self.cache = cache
        self.leads = LeadRepository(db)

    async def get(self, lead_number: str, user: User) -> NormalizedLead:
        key = lead_number.strip()
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Lead details cache hit", lead_number=key)
            return self._visible(cached, key, user)

        new_lead = None
        if key.isdigit():
            new_lead = await self.leads.get_new_by_manual_id(key)
        if new_lead is None and key:
            new_lead = await self.leads.get_new_by_lead_number(key)

        if new_lead is not None:
            refs = await ReferenceRepository(self.db).load()
            number = assign_display_numbers(numbering_inputs([new_lead], new_lead_base_number))[new_lead.id]
            lead = normalize_new_lead(new_lead, refs, number)
        else:
            legacy_key = key.split("/")[0].lstrip("C")
            legacy_lead = await self.leads.get_legacy(int(legacy_key)) if legacy_key.isdigit() else None
            if legacy_lead is None:
                raise NotFoundError("Lead", key)
            refs = await ReferenceRepository(self.db).load()
            number = assign_display_numbers(
                numbering_inputs([legacy_lead], legacy_lead_base_number)
            )[legacy_lead.id]
            lead = normalize_legacy_lead(legacy_lead, refs, number)

        self.cache.set(key, lead)
        return self._visible(lead, key, user)

    @staticmethod
    def _visible(lead: NormalizedLead, key: str, user: User) -> NormalizedLead:
        # Leads outside the allow-list look the same as missing ones
        if lead.source_id is None or lead.source_id not in user.allowed_source_ids:
            logger.info("Lead outside caller sources", lead_number=key, user_id=str(user.id))
            raise NotFoundError("Lead", key)
        return lead
