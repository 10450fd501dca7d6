"""Handler management schemas."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from lawcrm.schemas.lead import LeadType


class DueBreakdownSchema(BaseModel):
    """Amounts due in the recent window, converted to NIS."""

    total: float = 0.0
    first: float = 0.0
    intermediate: float = 0.0
    final_germany: float = 0.0
    final_austria: float = 0.0


class HandlerResponse(BaseModel):
    """Handler with counters computed from current lead and payment state."""

    id: int
    name: str
    official_name: str | None = None
    email: str | None = None
    department: str = "Unknown"
    new_cases_count: int = 0
    active_cases_count: int = 0
    in_process_count: int = 0
    applications_sent_count: int = 0
    dues: DueBreakdownSchema = Field(default_factory=DueBreakdownSchema)


class HandlerListResponse(BaseModel):
    """Handler list response."""

    handlers: list[HandlerResponse]
    total: int


class UnassignedLeadResponse(BaseModel):
    """Active lead without a handler."""

    id: int | str
    lead_type: LeadType
    display_lead_number: str
    name: str | None = None
    stage: int | None = None
    stage_name: str
    stage_colour: str
    category: str | None = None  # main category name
    created_at: datetime | None = None


class UnassignedLeadListResponse(BaseModel):
    """Unassigned leads response."""

    leads: list[UnassignedLeadResponse]
    total: int


class AssignRequest(BaseModel):
    """Assign leads to a handler; legacy leads use ``legacy_<id>`` ids."""

    lead_ids: list[str] = Field(default_factory=list)
    handler_id: int | None = None

    @field_validator("lead_ids", mode="before")
    @classmethod
    def stringify_ids(cls, v):
        if v is None:
            return []
        return [str(item) for item in v]


class AssignResponse(BaseModel):
    """Result of an assignment."""

    handler_id: int
    handler_name: str
    updated_new: int = 0
    updated_legacy: int = 0
