"""Lead models - the two parallel lead schemas.

``leads`` holds new leads, ``leads_lead`` holds legacy leads. They describe
the same business concept with different column layouts: text vs foreign-key
categories, a nullable ``unactivated_at`` vs a numeric ``status`` code, and
text vs id based role assignment.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lawcrm.models.base import Base, BigIntId

if TYPE_CHECKING:
    from lawcrm.models.taxonomy import Currency


# Stage codes with fixed business meaning
STAGE_CREATED = 0
STAGE_CLIENT_SIGNED = 60
STAGE_DROPPED = 91  # spam / irrelevant, excluded from every active view
STAGE_SUCCESS = 100
STAGE_HANDLER_SET = 105
STAGE_HANDLER_STARTED = 110
STAGE_APPLICATION_SUBMITTED = 150
STAGE_CLOSED = 200

# leads_lead.status codes
LEGACY_STATUS_ACTIVE = 0
LEGACY_STATUS_INACTIVE = 10


class NewLead(Base):
    """Lead in the current schema (``leads``)."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    lead_number: Mapped[str | None] = mapped_column(String(50), index=True)
    manual_id: Mapped[str | None] = mapped_column(String(50))
    master_id: Mapped[int | None] = mapped_column(BigIntId)

    # Basic Info
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    topic: Mapped[str | None] = mapped_column(String(255))

    # Classification (text columns are being replaced by the *_id columns)
    category: Mapped[str | None] = mapped_column(String(255))
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_category.id"))
    language: Mapped[str | None] = mapped_column(String(100))
    language_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_language.id"))
    source: Mapped[str | None] = mapped_column(String(255))
    source_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_leadsource.id"))
    stage: Mapped[int | None] = mapped_column(Integer, index=True)
    handler_stage: Mapped[int | None] = mapped_column(Integer)
    eligible: Mapped[bool | None] = mapped_column(Boolean)

    # Roles
    handler: Mapped[str | None] = mapped_column(String(255))
    case_handler_id: Mapped[int | None] = mapped_column(Integer)
    scheduler: Mapped[str | None] = mapped_column(String(255))
    meeting_scheduler_id: Mapped[int | None] = mapped_column(Integer)
    manager: Mapped[str | None] = mapped_column(String(255))
    meeting_manager_id: Mapped[int | None] = mapped_column(Integer)
    lawyer: Mapped[str | None] = mapped_column(String(255))
    meeting_lawyer_id: Mapped[int | None] = mapped_column(Integer)
    expert: Mapped[str | None] = mapped_column(String(255))
    expert_id: Mapped[int | None] = mapped_column(Integer)
    closer: Mapped[str | None] = mapped_column(String(255))
    closer_id: Mapped[int | None] = mapped_column(Integer)

    # Financial
    balance: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    balance_currency: Mapped[str | None] = mapped_column(String(10))
    proposal_total: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    proposal_currency: Mapped[str | None] = mapped_column(String(10))
    meeting_total: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    meeting_total_currency: Mapped[str | None] = mapped_column(String(10))

    # Notes
    facts: Mapped[str | None] = mapped_column(Text)
    special_notes: Mapped[str | None] = mapped_column(Text)
    general_notes: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    unactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<NewLead(id={self.id}, lead_number='{self.lead_number}', stage={self.stage})>"


class LegacyLead(Base):
    """Lead in the legacy schema (``leads_lead``)."""

    __tablename__ = "leads_lead"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    lead_number: Mapped[str | None] = mapped_column(String(50))
    manual_id: Mapped[str | None] = mapped_column(String(50))
    master_id: Mapped[int | None] = mapped_column(BigIntId)

    # Basic Info
    name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    mobile: Mapped[str | None] = mapped_column(String(50))
    topic: Mapped[str | None] = mapped_column(String(255))

    # Classification
    category: Mapped[str | None] = mapped_column(String(255))
    category_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_category.id"))
    language_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_language.id"))
    source_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("misc_leadsource.id"))
    source_external_id: Mapped[str | None] = mapped_column(String(255))
    stage: Mapped[int | None] = mapped_column(Integer, index=True)
    status: Mapped[int | None] = mapped_column(Integer)  # 0/None active, 10 inactive
    eligibile: Mapped[str | None] = mapped_column(String(10))  # column name as stored

    # Roles (id based only)
    case_handler_id: Mapped[int | None] = mapped_column(Integer)
    meeting_scheduler_id: Mapped[int | None] = mapped_column(Integer)
    meeting_manager_id: Mapped[int | None] = mapped_column(Integer)
    meeting_lawyer_id: Mapped[int | None] = mapped_column(Integer)
    expert_id: Mapped[int | None] = mapped_column(Integer)
    closer_id: Mapped[int | None] = mapped_column(Integer)

    # Financial
    total: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    total_base: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    currency_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("accounting_currencies.id"))
    proposal: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    meeting_total: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    meeting_total_currency_id: Mapped[int | None] = mapped_column(Integer)

    # Notes (often JSON encoded or HTML escaped)
    description: Mapped[str | None] = mapped_column(Text)
    special_notes: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    # Timestamps
    cdate: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    udate: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    unactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    currency: Mapped["Currency | None"] = relationship("Currency", lazy="joined")

    def __repr__(self) -> str:
        return f"<LegacyLead(id={self.id}, stage={self.stage}, status={self.status})>"


class LeadStageHistory(Base):
    """Stage transitions; a row references either a new or a legacy lead."""

    __tablename__ = "leads_leadstage"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    stage: Mapped[int] = mapped_column(Integer, nullable=False)
    lead_id: Mapped[int | None] = mapped_column(BigIntId, index=True)
    newlead_id: Mapped[int | None] = mapped_column(BigIntId, index=True)
    date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cdate: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
