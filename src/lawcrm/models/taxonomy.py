"""Lookup tables: categories, sources, languages, stages, currencies."""

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lawcrm.models.base import Base


class MainCategory(Base):
    """Top level of the category taxonomy (e.g. "Germany")."""

    __tablename__ = "misc_maincategory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<MainCategory(id={self.id}, name='{self.name}')>"


class Category(Base):
    """Subcategory, optionally linked to a main category."""

    __tablename__ = "misc_category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("misc_maincategory.id", ondelete="SET NULL"),
    )

    main_category: Mapped["MainCategory | None"] = relationship("MainCategory", lazy="joined")

    @property
    def display_name(self) -> str:
        """Formatted as "Subcategory (MainCategory)" when a parent exists."""
        if self.main_category is not None and self.main_category.name:
            return f"{self.name} ({self.main_category.name})"
        return self.name

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"


class LeadSource(Base):
    """Where a lead came from; external users are limited to a subset."""

    __tablename__ = "misc_leadsource"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class Language(Base):
    """Client language."""

    __tablename__ = "misc_language"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    iso_code: Mapped[str | None] = mapped_column(String(10))


class LeadStage(Base):
    """Workflow stage code with display name and badge colour."""

    __tablename__ = "lead_stages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    colour: Mapped[str | None] = mapped_column(String(20))


class Currency(Base):
    """Accounting currency."""

    __tablename__ = "accounting_currencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str | None] = mapped_column(String(50))
    iso_code: Mapped[str | None] = mapped_column(String(10))
