"""User and handler repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.models.employee import Employee, User


class UserRepository:
    """Users and the employees they are linked to."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.unique().scalar_one_or_none()

    async def list_handlers(self) -> list[User]:
        """Active staff users linked to an employee and with an email address."""
        result = await self.db.execute(
            select(User)
            .join(Employee, Employee.id == User.employee_id)
            .where(
                User.employee_id.is_not(None),
                User.is_active.is_(True),
                User.is_staff.is_(True),
                User.email.is_not(None),
            )
        )
        return list(result.unique().scalars().all())

    async def get_employee(self, employee_id: int) -> Employee | None:
        result = await self.db.execute(select(Employee).where(Employee.id == employee_id))
        return result.unique().scalar_one_or_none()
