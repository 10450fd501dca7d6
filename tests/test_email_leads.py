"""Tests for email triage grouping, attachments and thread dedupe."""

from datetime import datetime, timezone
from types import SimpleNamespace

from lawcrm.services.email_leads import (
    NO_SUBJECT,
    dedupe_messages,
    group_email_leads,
    is_sender_blocked,
    parse_attachments,
)


def email(id, sender, sent_at, **fields):
    values = {
        "id": id,
        "message_id": None,
        "sender_name": None,
        "sender_email": sender,
        "subject": None,
        "body_html": None,
        "body_preview": None,
        "sent_at": sent_at,
        "is_read": True,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def at(day, hour=10, minute=0, second=0, microsecond=0):
    return datetime(2024, 5, day, hour, minute, second, microsecond, tzinfo=timezone.utc)


def test_blocked_senders():
    blocked = ["no-reply@zoom.us"]
    domains = ["lawoffice.org.il"]
    assert is_sender_blocked("No-Reply@Zoom.us", blocked, domains)
    assert is_sender_blocked("office@lawoffice.org.il", blocked, domains)
    assert is_sender_blocked("bot@mail.lawoffice.org.il", blocked, domains)
    assert is_sender_blocked("", blocked, domains)
    assert is_sender_blocked(None, blocked, domains)
    assert not is_sender_blocked("client@notlawoffice.org.il", blocked, domains)
    assert not is_sender_blocked("client@example.com", blocked, domains)


def test_group_email_leads_by_sender():
    emails = [
        email(1, "Client@Example.com", at(1), subject="Hello", is_read=False),
        email(2, "client@example.com", at(3), subject=None, body_preview="Latest", sender_name="Dana"),
        email(3, "other@example.com", at(2), subject="Question"),
        email(4, "office@lawoffice.org.il", at(4), subject="Internal"),
    ]
    leads = group_email_leads(emails, blocked_domains=["lawoffice.org.il"])

    assert [lead.id for lead in leads] == ["client@example.com", "other@example.com"]
    client = leads[0]
    assert client.message_count == 2
    assert client.unread_count == 1
    assert client.last_message_at == at(3)
    assert client.last_subject == NO_SUBJECT
    assert client.last_message_preview == "Latest"
    assert client.sender_name == "Dana"
    assert leads[1].sender_name == "other"


def test_parse_attachments_shapes():
    listed = [{"id": "a", "name": "passport.pdf", "contentType": "application/pdf", "size": 10},
              {"id": "b", "name": "logo.png", "isInline": True},
              {"id": "c"}]
    assert parse_attachments(listed) == [
        {"id": "a", "name": "passport.pdf", "content_type": "application/pdf", "size": 10}
    ]
    assert [a["name"] for a in parse_attachments({"value": listed})] == ["passport.pdf"]
    assert [a["name"] for a in parse_attachments('[{"name": "x.doc"}]')] == ["x.doc"]
    assert [a["name"] for a in parse_attachments({"name": "single.txt"})] == ["single.txt"]


def test_parse_attachments_bad_input():
    assert parse_attachments("{broken") == []
    assert parse_attachments(None) == []
    assert parse_attachments("") == []
    assert parse_attachments(42) == []


def test_dedupe_prefers_message_id_then_longer_body_then_newer_row():
    messages = [
        email(1, "a@example.com", at(1, second=5, microsecond=100), body_html="long body here"),
        email(2, "A@example.com", at(1, second=5, microsecond=900), message_id="<m1>", body_html="short"),
        email(3, "a@example.com", at(2), body_preview="x"),
        email(4, "a@example.com", at(2, microsecond=5), body_preview="xyz"),
        email(5, "a@example.com", at(3), body_html="same"),
        email(6, "a@example.com", at(3), body_html="same"),
    ]
    result = dedupe_messages(messages)
    assert [message.id for message in result] == [2, 4, 6]


def test_dedupe_sorts_oldest_first():
    messages = [email(2, "a@example.com", at(5)), email(1, "a@example.com", at(1))]
    assert [message.id for message in dedupe_messages(messages)] == [1, 2]
