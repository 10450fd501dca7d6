"""Handler management endpoints."""

from datetime import date

from fastapi import APIRouter

from lawcrm.api.deps import DbSession, LeadDetailsCache, StaffUser
from lawcrm.schemas.handler import (
    AssignRequest,
    AssignResponse,
    DueBreakdownSchema,
    HandlerListResponse,
    HandlerResponse,
    UnassignedLeadListResponse,
    UnassignedLeadResponse,
)
from lawcrm.services.handlers import HandlerService

router = APIRouter()


@router.get("", response_model=HandlerListResponse)
async def list_handlers(
    user: StaffUser,
    db: DbSession,
    today: date | None = None,
) -> HandlerListResponse:
    """List handlers with case counters and amounts due in the last 30 days."""
    handlers = await HandlerService(db).list_handlers(today)
    items = [
        HandlerResponse(
            id=handler.id,
            name=handler.name,
            official_name=handler.official_name,
            email=handler.email,
            department=handler.department,
            new_cases_count=handler.new_cases_count,
            active_cases_count=handler.active_cases_count,
            in_process_count=handler.in_process_count,
            applications_sent_count=handler.applications_sent_count,
            dues=DueBreakdownSchema(**handler.dues.as_floats()),
        )
        for handler in handlers
    ]
    return HandlerListResponse(handlers=items, total=len(items))


@router.get("/unassigned", response_model=UnassignedLeadListResponse)
async def list_unassigned_leads(user: StaffUser, db: DbSession) -> UnassignedLeadListResponse:
    """Active leads at or past signing without a handler."""
    leads = await HandlerService(db).list_unassigned()
    items = [
        UnassignedLeadResponse(
            id=lead.id,
            lead_type=lead.lead_type,
            display_lead_number=lead.display_lead_number,
            name=lead.name,
            stage=lead.stage,
            stage_name=lead.stage_name,
            stage_colour=lead.stage_colour,
            category=lead.category,
            created_at=lead.created_at,
        )
        for lead in leads
    ]
    return UnassignedLeadListResponse(leads=items, total=len(items))


@router.post("/assign", response_model=AssignResponse)
async def assign_leads(
    request: AssignRequest,
    user: StaffUser,
    db: DbSession,
    cache: LeadDetailsCache,
) -> AssignResponse:
    """Assign leads to a handler."""
    result = await HandlerService(db).assign(request.lead_ids, request.handler_id)
    # Cached lead details carry the old handler
    cache.invalidate()
    return AssignResponse(
        handler_id=result.handler_id,
        handler_name=result.handler_name,
        updated_new=result.updated_new,
        updated_legacy=result.updated_legacy,
    )
