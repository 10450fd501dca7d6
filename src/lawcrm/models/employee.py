"""Employee, department and user models."""

import json
import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lawcrm.models.base import Base, JSONBType


class Department(Base):
    """Tenant department."""

    __tablename__ = "tenant_departement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Employee(Base):
    """Staff member; handlers and other case roles are employees."""

    __tablename__ = "tenants_employee"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    display_name: Mapped[str | None] = mapped_column(String(255))
    official_name: Mapped[str | None] = mapped_column(String(255))
    department_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("tenant_departement.id", ondelete="SET NULL"),
    )

    department: Mapped["Department | None"] = relationship("Department", lazy="joined")

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, display_name='{self.display_name}')>"


class User(Base):
    """Application user, optionally linked to an employee."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    full_name: Mapped[str | None] = mapped_column(String(255))
    employee_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("tenants_employee.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_staff: Mapped[bool] = mapped_column(Boolean, default=False)

    # JSON array of misc_leadsource ids the user may see; sometimes stored as a JSON string
    extern_source_id: Mapped[list | str | None] = mapped_column(JSONBType)

    employee: Mapped["Employee | None"] = relationship("Employee", lazy="joined")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"

    @property
    def allowed_source_ids(self) -> list[int]:
        """Source ids this user may query. Empty means nothing is visible."""
        raw = self.extern_source_id
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except ValueError:
                return []
        if not isinstance(raw, list):
            return []
        return [value for value in raw if isinstance(value, int) and not isinstance(value, bool)]
