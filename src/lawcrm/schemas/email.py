"""Email triage schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class EmailLeadResponse(BaseModel):
    """Inbound correspondence from one sender, triaged as a pseudo-lead."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    sender_name: str
    sender_email: str
    message_count: int
    unread_count: int
    last_message_at: datetime | None = None
    last_subject: str
    last_message_preview: str | None = None


class EmailLeadListResponse(BaseModel):
    """Email leads response."""

    leads: list[EmailLeadResponse]
    total: int


class AttachmentSchema(BaseModel):
    """Attachment metadata; content is fetched from the mail backend on demand."""

    id: str | None = None
    name: str
    content_type: str | None = None
    size: int | None = None


class EmailMessageResponse(BaseModel):
    """One message in a thread."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    message_id: str | None = None
    sender_name: str | None = None
    sender_email: str | None = None
    subject: str | None = None
    body_html: str | None = None
    body_preview: str | None = None
    sent_at: datetime | None = None
    direction: str | None = None
    is_read: bool | None = None
    attachments: list[AttachmentSchema] = Field(default_factory=list)


class EmailThreadResponse(BaseModel):
    """Deduplicated messages from one sender, oldest first."""

    sender_email: str
    messages: list[EmailMessageResponse]
    total: int
