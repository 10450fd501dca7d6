"""Main API router aggregating all v1 endpoints."""

from fastapi import APIRouter

from lawcrm.api.v1 import emails, handlers, leads

api_router = APIRouter()

# Include sub-routers
api_router.include_router(leads.router, prefix="/leads", tags=["Leads"])
api_router.include_router(handlers.router, prefix="/handlers", tags=["Handlers"])
api_router.include_router(emails.router, prefix="/emails", tags=["Emails"])
