"""Due payment queries for both schemas."""

from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.models.lead import LegacyLead, NewLead
from lawcrm.models.payment import PaymentPlan, PaymentPlanRow


class PaymentRepository:
    """Reads installments due in a date window.

    Rows come back with the owning lead's ``category_id`` so final payments
    can be split by jurisdiction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def due_new(
        self,
        since: datetime,
        until: datetime,
        lead_ids: Iterable[int] | None = None,
    ) -> list[tuple[PaymentPlan, int | None]]:
        """Ready-to-pay, uncancelled ``payment_plans`` rows due in the window."""
        conditions = [
            PaymentPlan.ready_to_pay.is_(True),
            PaymentPlan.cancel_date.is_(None),
            PaymentPlan.due_date.is_not(None),
            PaymentPlan.due_date >= since,
            PaymentPlan.due_date <= until,
        ]
        if lead_ids is not None:
            lead_ids = list(lead_ids)
            if not lead_ids:
                return []
            conditions.append(PaymentPlan.lead_id.in_(lead_ids))

        result = await self.db.execute(
            select(PaymentPlan, NewLead.category_id)
            .outerjoin(NewLead, NewLead.id == PaymentPlan.lead_id)
            .where(*conditions)
            .order_by(PaymentPlan.due_date)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def due_legacy(
        self,
        since: datetime,
        until: datetime,
        lead_ids: Iterable[int] | None = None,
    ) -> list[tuple[PaymentPlanRow, int | None]]:
        """Uncancelled ``finances_paymentplanrow`` rows due in the window."""
        conditions = [
            PaymentPlanRow.cancel_date.is_(None),
            PaymentPlanRow.due_date.is_not(None),
            PaymentPlanRow.due_date >= since,
            PaymentPlanRow.due_date <= until,
        ]
        if lead_ids is not None:
            lead_ids = list(lead_ids)
            if not lead_ids:
                return []
            conditions.append(PaymentPlanRow.lead_id.in_(lead_ids))

        result = await self.db.execute(
            select(PaymentPlanRow, LegacyLead.category_id)
            .outerjoin(LegacyLead, LegacyLead.id == PaymentPlanRow.lead_id)
            .where(*conditions)
            .order_by(PaymentPlanRow.due_date)
        )
        return [(row[0], row[1]) for row in result.unique().all()]
