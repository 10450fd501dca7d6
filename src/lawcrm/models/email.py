"""Synced mailbox messages."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lawcrm.models.base import Base, BigIntId, JSONBType


class Email(Base):
    """Email synced from the office mailbox."""

    __tablename__ = "emails"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    message_id: Mapped[str | None] = mapped_column(String(512), index=True)

    sender_name: Mapped[str | None] = mapped_column(String(255))
    sender_email: Mapped[str | None] = mapped_column(String(255), index=True)
    recipient_list: Mapped[str | None] = mapped_column(Text)
    subject: Mapped[str | None] = mapped_column(Text)
    body_html: Mapped[str | None] = mapped_column(Text)
    body_preview: Mapped[str | None] = mapped_column(Text)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    direction: Mapped[str | None] = mapped_column(String(20))  # 'incoming' / 'outgoing'
    is_read: Mapped[bool | None] = mapped_column(Boolean)

    # JSON array, JSON string, or {"value": [...]} depending on the sync path
    attachments: Mapped[list | dict | str | None] = mapped_column(JSONBType)

    # Links to a lead or contact; all may be null
    client_id: Mapped[int | None] = mapped_column(BigIntId)
    legacy_id: Mapped[int | None] = mapped_column(BigIntId)
    contact_id: Mapped[int | None] = mapped_column(Integer)

    def __repr__(self) -> str:
        return f"<Email(id={self.id}, sender='{self.sender_email}', sent_at={self.sent_at})>"
