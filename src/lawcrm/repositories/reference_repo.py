"""Load the lookup tables behind :class:`ReferenceMaps`."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.models.employee import Employee
from lawcrm.models.taxonomy import Category, Language, LeadSource, LeadStage, MainCategory
from lawcrm.services.references import (
    DEFAULT_STAGE_COLOUR,
    CategoryRef,
    LanguageRef,
    ReferenceMaps,
    StageBadge,
)

logger = structlog.get_logger(__name__)


class ReferenceRepository:
    """Reads categories, sources, stages, employees and languages.

    A table that fails to load yields an empty map; lookups against it then
    fall back to raw values.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _rows(self, table: str, query) -> list:
        # Savepoint per table keeps the session usable after a failed load
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(query)
                return list(result.scalars().unique().all())
        except SQLAlchemyError as e:
            logger.warning("Reference table failed to load", table=table, error=str(e))
            return []

    async def load(self) -> ReferenceMaps:
        """Build a fresh set of reference maps."""
        main_categories = await self._rows("misc_maincategory", select(MainCategory))
        categories = await self._rows("misc_category", select(Category))
        sources = await self._rows("misc_leadsource", select(LeadSource))
        stages = await self._rows("lead_stages", select(LeadStage))
        employees = await self._rows("tenants_employee", select(Employee))
        languages = await self._rows("misc_language", select(Language))

        main_names = {main.id: main.name for main in main_categories}
        refs = ReferenceMaps(
            categories={
                category.id: CategoryRef(
                    id=category.id,
                    name=category.name,
                    main_category_id=category.parent_id,
                    main_category_name=main_names.get(category.parent_id)
                    or (category.main_category.name if category.main_category else None),
                )
                for category in categories
            },
            main_categories=main_names,
            sources={source.id: source.name for source in sources},
            stages={
                stage.id: StageBadge(stage.name, stage.colour or DEFAULT_STAGE_COLOUR)
                for stage in stages
            },
            employees={
                employee.id: employee.display_name or employee.official_name or str(employee.id)
                for employee in employees
            },
            languages=[
                LanguageRef(language.id, language.name, language.iso_code) for language in languages
            ],
        )
        logger.debug(
            "Loaded reference maps",
            categories=len(refs.categories),
            sources=len(refs.sources),
            stages=len(refs.stages),
            employees=len(refs.employees),
        )
        return refs
