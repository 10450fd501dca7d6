"""Lead schemas for request/response validation."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lawcrm.schemas.common import SourceError

LeadType = Literal["new", "legacy"]

ROLE_NAMES = ("scheduler", "manager", "lawyer", "expert", "closer", "case_handler")


class LeadFilter(BaseModel):
    """Search filters shared by both lead schemas.

    An empty list means "no constraint" for that field; one or more values
    mean the lead must match any of them.
    """

    from_date: date | None = None
    to_date: date | None = None
    category: list[str] = Field(default_factory=list)
    language: list[str] = Field(default_factory=list)
    status: list[str] = Field(default_factory=list)
    source: list[str] = Field(default_factory=list)
    stage: list[str] = Field(default_factory=list)
    topic: list[str] = Field(default_factory=list)
    eligibility_determined_only: bool = False

    # Role filters: employee display names or numeric ids
    scheduler: list[str] = Field(default_factory=list)
    manager: list[str] = Field(default_factory=list)
    lawyer: list[str] = Field(default_factory=list)
    expert: list[str] = Field(default_factory=list)
    closer: list[str] = Field(default_factory=list)
    case_handler: list[str] = Field(default_factory=list)

    @field_validator(
        "category", "language", "status", "source", "stage", "topic", *ROLE_NAMES,
        mode="before",
    )
    @classmethod
    def drop_blank_values(cls, v):
        """Accept a single string and drop blank entries."""
        if v is None:
            return []
        if isinstance(v, (str, int)):
            v = [v]
        return [str(item).strip() for item in v if item is not None and str(item).strip()]


class NormalizedLead(BaseModel):
    """One lead from either schema in a common shape."""

    model_config = ConfigDict(from_attributes=True)

    id: int | str  # legacy ids are "legacy_<id>"
    raw_id: int
    lead_type: LeadType
    lead_number: str | None = None
    display_lead_number: str
    master_id: int | None = None

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    topic: str | None = None

    stage: int | None = None
    stage_name: str
    stage_colour: str
    category: str | None = None
    category_id: int | None = None
    main_category: str | None = None
    source: str | None = None
    source_id: int | None = None
    language: str | None = None

    active: bool
    status: Literal["active", "inactive"]
    eligible: bool = False

    handler_id: int | None = None
    handler_name: str | None = None
    roles: dict[str, str | None] = Field(default_factory=dict)

    balance: float | None = None
    balance_currency: str
    proposal_total: float | None = None
    proposal_currency: str
    meeting_total: float | None = None
    meeting_currency: str

    created_at: datetime | None = None
    unactivated_at: datetime | None = None

    facts: str | None = None
    special_notes: str | None = None
    general_notes: str | None = None


class LeadSearchResponse(BaseModel):
    """Merged search result; ``errors`` lists sources that failed."""

    leads: list[NormalizedLead]
    total: int
    errors: list[SourceError] = Field(default_factory=list)
