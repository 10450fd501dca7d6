"""Handler case counters, due amounts, and lead assignment.

Counters are recomputed from current lead and payment state on every call;
nothing here is stored.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.config import settings
from lawcrm.exceptions import AssignmentValidationError, NotFoundError
from lawcrm.models.employee import User
from lawcrm.models.lead import (
    LEGACY_STATUS_ACTIVE,
    STAGE_APPLICATION_SUBMITTED,
    STAGE_CLOSED,
    STAGE_DROPPED,
    STAGE_HANDLER_SET,
    STAGE_HANDLER_STARTED,
    LegacyLead,
    NewLead,
)
from lawcrm.query import Eq, Gte, IsNull, Ne, Predicate, and_, matches, or_
from lawcrm.repositories.lead_repo import LeadRepository
from lawcrm.repositories.payment_repo import PaymentRepository
from lawcrm.repositories.reference_repo import ReferenceRepository
from lawcrm.repositories.user_repo import UserRepository
from lawcrm.schemas.lead import NormalizedLead
from lawcrm.services.lead_filters import end_of_day, start_of_day
from lawcrm.services.lead_search import normalize_results
from lawcrm.services.normalizer import LEGACY_ID_PREFIX, resolve_currency
from lawcrm.services.payments import DueBreakdown, DuePayment, normalize_order_code, summarize_dues
from lawcrm.services.references import ReferenceMaps

logger = structlog.get_logger(__name__)

EMPTY_HANDLER_MARKERS = {"", "--", "---"}
UNKNOWN_DEPARTMENT = "Unknown"


def has_handler_text(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip() not in EMPTY_HANDLER_MARKERS


def is_unassigned(handler_id: int | None, handler_name: str | None) -> bool:
    """A lead is unassigned only when both the id and the text are empty."""
    return handler_id is None and not has_handler_text(handler_name)


def _stage_number(stage) -> int | None:
    if stage is None:
        return None
    try:
        return int(stage)
    except (TypeError, ValueError):
        return None


def stage_bucket(stage) -> str:
    """``closed``, ``active`` or ``new`` for a lead stage."""
    number = _stage_number(stage)
    if number is None:
        return "new"
    if number == STAGE_CLOSED:
        return "closed"
    if number >= STAGE_HANDLER_STARTED:
        return "active"
    return "new"


def is_in_process(stage) -> bool:
    number = _stage_number(stage)
    if number is None:
        return False
    return number <= STAGE_HANDLER_SET or STAGE_HANDLER_STARTED <= number < STAGE_APPLICATION_SUBMITTED


@dataclass(frozen=True)
class CaseCounts:
    new: int = 0
    active: int = 0
    in_process: int = 0


def count_cases(stages: Iterable) -> CaseCounts:
    """Counts over a handler's leads; closed leads are not counted."""
    buckets: Counter = Counter()
    in_process = 0
    for stage in stages:
        bucket = stage_bucket(stage)
        if bucket == "closed":
            continue
        buckets[bucket] += 1
        if is_in_process(stage):
            in_process += 1
    return CaseCounts(new=buckets["new"], active=buckets["active"], in_process=in_process)


def handler_view_new_predicate(min_stage: int) -> Predicate:
    """Active new leads past signing, excluding dropped ones."""
    return and_(Gte("stage", min_stage), Ne("stage", STAGE_DROPPED), IsNull("unactivated_at"))


def handler_view_legacy_predicate(min_stage: int) -> Predicate:
    return and_(
        Gte("stage", min_stage),
        Ne("stage", STAGE_DROPPED),
        or_(Eq("status", LEGACY_STATUS_ACTIVE), IsNull("status")),
    )


def owns_new_lead(handler_id: int, handler_name: str) -> Predicate:
    """New leads may reference the handler by name or by id."""
    if not handler_name:
        return Eq("case_handler_id", handler_id)
    return or_(Eq("handler", handler_name), Eq("case_handler_id", handler_id))


def parse_lead_key(value: str) -> tuple[str, int]:
    """``("legacy", id)`` for ``legacy_<id>``, else ``("new", id)``."""
    text = str(value).strip()
    lead_type = "new"
    if text.startswith(LEGACY_ID_PREFIX):
        lead_type = "legacy"
        text = text[len(LEGACY_ID_PREFIX):]
    if not text.isdigit():
        raise AssignmentValidationError(f"Invalid lead id: {value}")
    return lead_type, int(text)


@dataclass
class HandlerSummary:
    """A handler and the counters computed for them."""

    id: int
    name: str
    official_name: str | None = None
    email: str | None = None
    department: str = UNKNOWN_DEPARTMENT
    new_cases_count: int = 0
    active_cases_count: int = 0
    in_process_count: int = 0
    applications_sent_count: int = 0
    dues: DueBreakdown = field(default_factory=DueBreakdown)


@dataclass
class AssignmentResult:
    handler_id: int
    handler_name: str
    updated_new: int = 0
    updated_legacy: int = 0


def _handler_from_user(user: User) -> HandlerSummary:
    employee = user.employee
    name = (employee.display_name or employee.official_name) if employee else None
    department = employee.department.name if employee and employee.department else None
    return HandlerSummary(
        id=user.employee_id,
        name=name or user.full_name or "",
        official_name=employee.official_name if employee else None,
        email=user.email,
        department=department or UNKNOWN_DEPARTMENT,
    )


class HandlerService:
    """Handler list, unassigned leads, and assignment."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.leads = LeadRepository(db)
        self.payments = PaymentRepository(db)
        self.users = UserRepository(db)

    async def _candidate_leads(self, unassigned_only: bool = False) -> tuple[list[NewLead], list[LegacyLead]]:
        new_predicate = handler_view_new_predicate(settings.handler_min_stage)
        legacy_predicate = handler_view_legacy_predicate(settings.handler_min_stage)
        if unassigned_only:
            new_predicate = and_(new_predicate, IsNull("case_handler_id"))
            legacy_predicate = and_(legacy_predicate, IsNull("case_handler_id"))
        return (
            await self.leads.find_new(new_predicate),
            await self.leads.find_legacy(legacy_predicate),
        )

    async def _due_payments(
        self,
        refs: ReferenceMaps,
        today: date,
        new_ids: list[int],
        legacy_ids: list[int],
    ) -> dict[str, list[DuePayment]]:
        since = start_of_day(today - timedelta(days=settings.handler_due_window_days))
        until = end_of_day(today)
        by_lead: dict[str, list[DuePayment]] = defaultdict(list)

        for plan, category_id in await self.payments.due_new(since, until, new_ids):
            ref = refs.main_category(category_id)
            key = str(plan.lead_id)
            by_lead[key].append(DuePayment(
                lead_key=key,
                amount=plan.value or 0,
                currency=resolve_currency(plan.currency),
                order_code=normalize_order_code(plan.payment_order),
                due_date=plan.due_date,
                main_category_id=ref.main_category_id if ref else None,
            ))

        for row, category_id in await self.payments.due_legacy(since, until, legacy_ids):
            ref = refs.main_category(category_id)
            key = f"{LEGACY_ID_PREFIX}{row.lead_id}"
            by_lead[key].append(DuePayment(
                lead_key=key,
                amount=row.value if row.value is not None else (row.value_base or 0),
                currency=resolve_currency(row.currency_id, row.currency),
                order_code=normalize_order_code(row.order),
                due_date=row.due_date,
                main_category_id=ref.main_category_id if ref else None,
            ))
        return by_lead

    async def list_handlers(self, today: date | None = None) -> list[HandlerSummary]:
        """All handlers with case counters and the recent due breakdown."""
        today = today or datetime.now(timezone.utc).date()
        refs = await ReferenceRepository(self.db).load()
        users = await self.users.list_handlers()
        new_leads, legacy_leads = await self._candidate_leads()

        new_ids = [lead.id for lead in new_leads]
        legacy_ids = [lead.id for lead in legacy_leads]
        sent_new, sent_legacy = await self.leads.leads_with_stage_at_least(
            STAGE_APPLICATION_SUBMITTED, new_ids, legacy_ids
        )
        dues_by_lead = await self._due_payments(refs, today, new_ids, legacy_ids)
        germany_id = refs.main_category_id_for(settings.germany_main_category)
        austria_id = refs.main_category_id_for(settings.austria_main_category)

        handlers = []
        for user in users:
            handler = _handler_from_user(user)
            owns = owns_new_lead(handler.id, handler.name)
            mine_new = [lead for lead in new_leads if matches(owns, lead)]
            mine_legacy = [lead for lead in legacy_leads if lead.case_handler_id == handler.id]

            counts = count_cases(
                [lead.handler_stage or lead.stage for lead in mine_new]
                + [lead.stage for lead in mine_legacy]
            )
            handler.new_cases_count = counts.new
            handler.active_cases_count = counts.active
            handler.in_process_count = counts.in_process
            handler.applications_sent_count = (
                len({lead.id for lead in mine_new} & sent_new)
                + len({lead.id for lead in mine_legacy} & sent_legacy)
            )

            lead_keys = [str(lead.id) for lead in mine_new]
            lead_keys += [f"{LEGACY_ID_PREFIX}{lead.id}" for lead in mine_legacy]
            handler.dues = summarize_dues(
                (payment for key in lead_keys for payment in dues_by_lead.get(key, [])),
                germany_id,
                austria_id,
            )
            handlers.append(handler)

        handlers.sort(key=lambda handler: handler.name.lower())
        logger.info("Computed handler counters", handlers=len(handlers))
        return handlers

    async def list_unassigned(self) -> list[NormalizedLead]:
        """Active leads at or past signing that have no handler, newest first."""
        refs = await ReferenceRepository(self.db).load()
        new_leads, legacy_leads = await self._candidate_leads(unassigned_only=True)
        new_leads = [lead for lead in new_leads if is_unassigned(lead.case_handler_id, lead.handler)]
        legacy_leads = [lead for lead in legacy_leads if is_unassigned(lead.case_handler_id, None)]

        leads = normalize_results(new_leads, legacy_leads, refs, success_prefix=True)
        for lead in leads:
            lead.category = lead.main_category or lead.category
        return leads

    async def assign(self, lead_ids: list[str], handler_id: int | None) -> AssignmentResult:
        """Assign leads to a handler.

        Input is validated before any database call. Legacy leads only carry
        the handler id; new leads get both the id and the display name.
        """
        if handler_id is None:
            raise AssignmentValidationError("Please select a handler")
        if not lead_ids:
            raise AssignmentValidationError("Please select at least one lead")

        new_ids: list[int] = []
        legacy_ids: list[int] = []
        for value in lead_ids:
            lead_type, lead_id = parse_lead_key(value)
            (legacy_ids if lead_type == "legacy" else new_ids).append(lead_id)

        employee = await self.users.get_employee(handler_id)
        if employee is None:
            raise NotFoundError("Handler", handler_id)
        handler_name = employee.display_name or employee.official_name or str(handler_id)

        result = AssignmentResult(
            handler_id=handler_id,
            handler_name=handler_name,
            updated_new=await self.leads.assign_new_handler(new_ids, handler_name, handler_id),
            updated_legacy=await self.leads.assign_legacy_handler(legacy_ids, handler_id),
        )
        logger.info(
            "Assigned leads to handler",
            handler_id=handler_id,
            new_leads=result.updated_new,
            legacy_leads=result.updated_legacy,
        )
        return result
