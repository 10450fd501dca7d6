"""Lead repositories for both schemas."""

import asyncio
from dataclasses import dataclass, field
from typing import Iterable

import structlog
from sqlalchemy import distinct, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lawcrm.exceptions import LeadQueryError
from lawcrm.models.lead import LeadStageHistory, LegacyLead, NewLead
from lawcrm.query import Predicate, compile_predicate

logger = structlog.get_logger(__name__)

SOURCE_NEW = "new"
SOURCE_LEGACY = "legacy"


class LeadRepository:
    """Queries and keyed updates against ``leads`` and ``leads_lead``."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_new(self, predicate: Predicate, limit: int | None = None) -> list[NewLead]:
        """New leads matching a predicate, newest first."""
        query = (
            select(NewLead)
            .where(compile_predicate(predicate, NewLead))
            .order_by(NewLead.created_at.desc(), NewLead.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_legacy(self, predicate: Predicate, limit: int | None = None) -> list[LegacyLead]:
        """Legacy leads matching a predicate, newest first."""
        query = (
            select(LegacyLead)
            .where(compile_predicate(predicate, LegacyLead))
            .order_by(LegacyLead.cdate.desc(), LegacyLead.id.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def get_new_by_manual_id(self, manual_id: str) -> NewLead | None:
        result = await self.db.execute(
            select(NewLead).where(NewLead.manual_id == manual_id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_new_by_lead_number(self, lead_number: str) -> NewLead | None:
        result = await self.db.execute(
            select(NewLead).where(NewLead.lead_number == lead_number).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_legacy(self, lead_id: int) -> LegacyLead | None:
        result = await self.db.execute(select(LegacyLead).where(LegacyLead.id == lead_id))
        return result.unique().scalar_one_or_none()

    async def leads_with_stage_at_least(
        self,
        stage: int,
        new_ids: Iterable[int] = (),
        legacy_ids: Iterable[int] = (),
    ) -> tuple[set[int], set[int]]:
        """Ids of the given leads that have ever reached ``stage`` (new ids, legacy ids)."""
        new_ids = list(new_ids)
        legacy_ids = list(legacy_ids)
        reached_new: set[int] = set()
        reached_legacy: set[int] = set()

        if new_ids:
            result = await self.db.execute(
                select(distinct(LeadStageHistory.newlead_id)).where(
                    LeadStageHistory.newlead_id.in_(new_ids),
                    LeadStageHistory.stage >= stage,
                )
            )
            reached_new = set(result.scalars().all())

        if legacy_ids:
            result = await self.db.execute(
                select(distinct(LeadStageHistory.lead_id)).where(
                    LeadStageHistory.lead_id.in_(legacy_ids),
                    LeadStageHistory.stage >= stage,
                )
            )
            reached_legacy = set(result.scalars().all())

        return reached_new, reached_legacy

    async def assign_new_handler(self, lead_ids: list[int], handler_name: str, handler_id: int) -> int:
        """Set both the text and the id handler columns on new leads."""
        if not lead_ids:
            return 0
        result = await self.db.execute(
            update(NewLead)
            .where(NewLead.id.in_(lead_ids))
            .values(handler=handler_name, case_handler_id=handler_id)
        )
        return result.rowcount or 0

    async def assign_legacy_handler(self, lead_ids: list[int], handler_id: int) -> int:
        if not lead_ids:
            return 0
        result = await self.db.execute(
            update(LegacyLead)
            .where(LegacyLead.id.in_(lead_ids))
            .values(case_handler_id=handler_id)
        )
        return result.rowcount or 0


@dataclass
class DualQueryResult:
    """Raw rows from both schemas plus any per-source failure."""

    new_leads: list[NewLead] = field(default_factory=list)
    legacy_leads: list[LegacyLead] = field(default_factory=list)
    errors: list[LeadQueryError] = field(default_factory=list)

    @property
    def failed_sources(self) -> set[str]:
        return {error.source for error in self.errors}


class DualSourceLeadRepository:
    """Runs the new and legacy lead queries concurrently.

    Each query gets its own session so one failing does not poison the
    other. A failure is reported in ``errors`` and the other source's rows
    are still returned.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def _run(self, source: str, predicate: Predicate, limit: int | None) -> list:
        async with self.session_maker() as session:
            repo = LeadRepository(session)
            if source == SOURCE_NEW:
                return await repo.find_new(predicate, limit)
            return await repo.find_legacy(predicate, limit)

    async def search(
        self,
        new_predicate: Predicate,
        legacy_predicate: Predicate,
        limit: int | None = None,
    ) -> DualQueryResult:
        """Query both schemas and collect rows and errors."""
        new_result, legacy_result = await asyncio.gather(
            self._run(SOURCE_NEW, new_predicate, limit),
            self._run(SOURCE_LEGACY, legacy_predicate, limit),
            return_exceptions=True,
        )

        result = DualQueryResult()
        for source, outcome in ((SOURCE_NEW, new_result), (SOURCE_LEGACY, legacy_result)):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error("Lead query failed", source=source, error=str(outcome))
                result.errors.append(LeadQueryError(source, str(outcome)))
            elif source == SOURCE_NEW:
                result.new_leads = outcome
            else:
                result.legacy_leads = outcome

        logger.debug(
            "Dual lead query finished",
            new_count=len(result.new_leads),
            legacy_count=len(result.legacy_leads),
            failed=sorted(result.failed_sources),
        )
        return result
