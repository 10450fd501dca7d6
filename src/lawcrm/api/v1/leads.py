"""Lead search and lookup endpoints."""

from fastapi import APIRouter, Query

from lawcrm.api.deps import CurrentUser, DbSession, GenerationGuard, LeadDetailsCache, SessionMaker
from lawcrm.schemas.common import SourceError
from lawcrm.schemas.lead import LeadFilter, LeadSearchResponse, NormalizedLead
from lawcrm.services.lead_details import LeadDetailsService
from lawcrm.services.lead_search import LeadSearchService

router = APIRouter()


@router.post("/search", response_model=LeadSearchResponse)
async def search_leads(
    filters: LeadFilter,
    user: CurrentUser,
    session_maker: SessionMaker,
    guard: GenerationGuard,
    view_key: str = Query("default", max_length=100),
) -> LeadSearchResponse:
    """Search new and legacy leads.

    If one schema fails, the other's leads are still returned and the
    failure is listed in ``errors``.
    """
    service = LeadSearchService(session_maker, guard)
    result = await service.search(filters, user, view_key=view_key)
    return LeadSearchResponse(
        leads=result.leads,
        total=len(result.leads),
        errors=[SourceError(source=error.source, message=error.message) for error in result.errors],
    )


@router.get("/by-number/{lead_number}", response_model=NormalizedLead)
async def get_lead_by_number(
    lead_number: str,
    user: CurrentUser,
    db: DbSession,
    cache: LeadDetailsCache,
) -> NormalizedLead:
    """Get a lead by the number shown to users."""
    return await LeadDetailsService(db, cache).get(lead_number, user)
