"""Group inbound email into triage pseudo-leads and clean up threads."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

import structlog

logger = structlog.get_logger(__name__)

NO_SUBJECT = "No Subject"


@dataclass
class EmailLead:
    """All inbound mail from one sender."""

    id: str
    sender_name: str
    sender_email: str
    message_count: int = 0
    unread_count: int = 0
    last_message_at: datetime | None = None
    last_subject: str = NO_SUBJECT
    last_message_preview: str | None = None


def is_sender_blocked(
    address: str | None,
    blocked_emails: Iterable[str],
    blocked_domains: Iterable[str],
) -> bool:
    """True for empty addresses, blocked addresses, and blocked domains or their subdomains."""
    if not address or not address.strip():
        return True
    email = address.strip().lower()
    if email in {blocked.lower() for blocked in blocked_emails}:
        return True

    domain = email.rpartition("@")[2]
    for blocked in blocked_domains:
        blocked = blocked.lower().lstrip("@")
        if domain == blocked or domain.endswith(f".{blocked}"):
            return True
    return False


def _sort_time(value: datetime | None) -> float:
    return value.timestamp() if value is not None else float("-inf")


def group_email_leads(
    emails: Iterable[Any],
    blocked_emails: Iterable[str] = (),
    blocked_domains: Iterable[str] = (),
) -> list[EmailLead]:
    """One :class:`EmailLead` per sender, newest conversation first."""
    blocked_emails = list(blocked_emails)
    blocked_domains = list(blocked_domains)
    leads: dict[str, EmailLead] = {}

    for email in emails:
        if is_sender_blocked(email.sender_email, blocked_emails, blocked_domains):
            continue
        key = email.sender_email.strip().lower()

        lead = leads.get(key)
        if lead is None:
            lead = EmailLead(
                id=key,
                sender_name=(email.sender_name or "").strip() or key.split("@")[0],
                sender_email=key,
            )
            leads[key] = lead

        lead.message_count += 1
        if not email.is_read:
            lead.unread_count += 1
        if lead.last_message_at is None or _sort_time(email.sent_at) > _sort_time(lead.last_message_at):
            lead.last_message_at = email.sent_at
            lead.last_subject = email.subject or NO_SUBJECT
            lead.last_message_preview = email.body_preview or email.body_html
            if email.sender_name and email.sender_name.strip():
                lead.sender_name = email.sender_name.strip()

    return sorted(leads.values(), key=lambda lead: _sort_time(lead.last_message_at), reverse=True)


def parse_attachments(value: Any) -> list[dict]:
    """Attachment metadata from a stored column.

    Accepts a JSON string, a list, ``{"value": [...]}`` or a single object.
    Inline and nameless attachments are dropped; malformed JSON yields ``[]``.
    """
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        if not value.strip():
            return []
        try:
            value = json.loads(value)
        except ValueError:
            logger.debug("Malformed attachments JSON")
            return []

    if isinstance(value, dict):
        value = value["value"] if isinstance(value.get("value"), list) else [value]
    if not isinstance(value, list):
        return []

    attachments = []
    for item in value:
        if not isinstance(item, dict) or item.get("isInline") or not item.get("name"):
            continue
        attachments.append({
            "id": item.get("id"),
            "name": item["name"],
            "content_type": item.get("contentType") or item.get("content_type"),
            "size": item.get("size"),
        })
    return attachments


def _dedupe_key(message: Any) -> tuple[str, datetime | None]:
    sent_at = message.sent_at.replace(microsecond=0) if message.sent_at else None
    return (message.sender_email or "").strip().lower(), sent_at


def _preference(message: Any) -> tuple[int, int, int]:
    body = message.body_html or message.body_preview or ""
    return (1 if message.message_id else 0, len(body), message.id or 0)


def dedupe_messages(messages: Iterable[Any]) -> list[Any]:
    """Drop copies of the same message synced twice, oldest first.

    Copies share a sender and a send time to the second. The copy with a
    ``message_id`` wins, then the one with the longer body, then the newer row.
    """
    best: dict[tuple, Any] = {}
    for message in messages:
        key = _dedupe_key(message)
        current = best.get(key)
        if current is None or _preference(message) > _preference(current):
            best[key] = message
    return sorted(best.values(), key=lambda message: _sort_time(message.sent_at))
