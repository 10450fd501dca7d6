"""Email repository for triage and threads."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lawcrm.models.email import Email

INCOMING = "incoming"


class EmailRepository:
    """Read access to synced mailbox messages."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_inbound(self, inbox_address: str, limit: int | None = None) -> list[Email]:
        """Incoming messages addressed to the office inbox, newest first."""
        query = (
            select(Email)
            .where(
                Email.direction == INCOMING,
                Email.recipient_list.ilike(f"%{inbox_address}%"),
            )
            .order_by(Email.sent_at.desc())
        )
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_from_sender(self, sender_email: str) -> list[Email]:
        """All messages from one sender, oldest first."""
        result = await self.db.execute(
            select(Email)
            .where(func.lower(Email.sender_email) == sender_email.strip().lower())
            .order_by(Email.sent_at.asc())
        )
        return list(result.scalars().all())
