"""Payment plan models for new and legacy leads."""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lawcrm.models.base import Base, BigIntId

if TYPE_CHECKING:
    from lawcrm.models.taxonomy import Currency


class PaymentPlan(Base):
    """Due installment of a new lead (``payment_plans``)."""

    __tablename__ = "payment_plans"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    lead_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("leads.id"), index=True)
    value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    currency: Mapped[str | None] = mapped_column(String(10))  # code or symbol
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ready_to_pay: Mapped[bool] = mapped_column(Boolean, default=False)
    cancel_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    payment_order: Mapped[str | None] = mapped_column(String(50))  # free text or numeric code


class PaymentPlanRow(Base):
    """Due installment of a legacy lead (``finances_paymentplanrow``)."""

    __tablename__ = "finances_paymentplanrow"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    lead_id: Mapped[int] = mapped_column(BigIntId, ForeignKey("leads_lead.id"), index=True)
    value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    value_base: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    currency_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("accounting_currencies.id"))
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancel_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    order: Mapped[int | None] = mapped_column("order", Integer)

    currency: Mapped["Currency | None"] = relationship("Currency", lazy="joined")
