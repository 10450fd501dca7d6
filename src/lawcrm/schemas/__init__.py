"""Pydantic schemas for request/response validation."""

from lawcrm.schemas.common import MessageResponse, SourceError
from lawcrm.schemas.lead import LeadFilter, LeadSearchResponse, NormalizedLead
from lawcrm.schemas.handler import (
    AssignRequest,
    AssignResponse,
    DueBreakdownSchema,
    HandlerListResponse,
    HandlerResponse,
    UnassignedLeadListResponse,
    UnassignedLeadResponse,
)
from lawcrm.schemas.email import (
    AttachmentSchema,
    EmailLeadListResponse,
    EmailLeadResponse,
    EmailMessageResponse,
    EmailThreadResponse,
)

__all__ = [
    "MessageResponse",
    "SourceError",
    "LeadFilter",
    "LeadSearchResponse",
    "NormalizedLead",
    "AssignRequest",
    "AssignResponse",
    "DueBreakdownSchema",
    "HandlerListResponse",
    "HandlerResponse",
    "UnassignedLeadListResponse",
    "UnassignedLeadResponse",
    "AttachmentSchema",
    "EmailLeadListResponse",
    "EmailLeadResponse",
    "EmailMessageResponse",
    "EmailThreadResponse",
]
