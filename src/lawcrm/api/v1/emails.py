"""Email triage and mailbox endpoints."""

from fastapi import APIRouter, HTTPException, Response, status

from lawcrm.api.deps import CurrentUser, DbSession, Mailbox
from lawcrm.config import settings
from lawcrm.repositories.email_repo import EmailRepository
from lawcrm.schemas.common import MessageResponse
from lawcrm.schemas.email import (
    AttachmentSchema,
    EmailLeadListResponse,
    EmailLeadResponse,
    EmailMessageResponse,
    EmailThreadResponse,
)
from lawcrm.services.email_leads import dedupe_messages, group_email_leads, parse_attachments

router = APIRouter()


@router.get("/leads", response_model=EmailLeadListResponse)
async def list_email_leads(user: CurrentUser, db: DbSession) -> EmailLeadListResponse:
    """Inbound office mail grouped by sender, most recent first."""
    emails = await EmailRepository(db).list_inbound(
        settings.office_inbox_address, limit=settings.email_lead_fetch_limit
    )
    leads = group_email_leads(
        emails,
        blocked_emails=settings.blocked_sender_emails,
        blocked_domains=settings.blocked_sender_domains,
    )
    return EmailLeadListResponse(
        leads=[EmailLeadResponse.model_validate(lead) for lead in leads],
        total=len(leads),
    )


@router.get("/thread/{sender_email}", response_model=EmailThreadResponse)
async def get_email_thread(sender_email: str, user: CurrentUser, db: DbSession) -> EmailThreadResponse:
    """Messages from one sender with sync duplicates removed, oldest first."""
    messages = dedupe_messages(await EmailRepository(db).list_from_sender(sender_email))
    items = [
        EmailMessageResponse(
            id=message.id,
            message_id=message.message_id,
            sender_name=message.sender_name,
            sender_email=message.sender_email,
            subject=message.subject,
            body_html=message.body_html,
            body_preview=message.body_preview,
            sent_at=message.sent_at,
            direction=message.direction,
            is_read=message.is_read,
            attachments=[AttachmentSchema(**item) for item in parse_attachments(message.attachments)],
        )
        for message in messages
    ]
    return EmailThreadResponse(sender_email=sender_email.strip().lower(), messages=items, total=len(items))


@router.get("/mailbox/status")
async def get_mailbox_status(user: CurrentUser, mailbox: Mailbox) -> dict:
    """Connection status of the caller's mailbox."""
    return await mailbox.get_status(str(user.id))


@router.post("/mailbox/sync", response_model=MessageResponse)
async def sync_mailbox(user: CurrentUser, mailbox: Mailbox, reset: bool = False) -> MessageResponse:
    """Ask the mail backend to sync the caller's mailbox now."""
    await mailbox.trigger_sync(str(user.id), reset=reset)
    return MessageResponse(message="Mailbox sync started")


@router.get("/{email_id}/body")
async def get_email_body(email_id: str, user: CurrentUser, mailbox: Mailbox) -> dict:
    """Full message body fetched from the mail backend."""
    return {"id": email_id, "body": await mailbox.fetch_email_body(str(user.id), email_id)}


@router.get("/{email_id}/attachments/{attachment_id}")
async def download_attachment(
    email_id: str,
    attachment_id: str,
    user: CurrentUser,
    mailbox: Mailbox,
) -> Response:
    """Stream an attachment through from the mail backend."""
    try:
        content, file_name, content_type = await mailbox.download_attachment(
            str(user.id), email_id, attachment_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return Response(
        content=content,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )
