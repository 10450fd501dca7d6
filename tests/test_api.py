"""Tests for the HTTP API."""

import uuid

import httpx
import pytest
from httpx import AsyncClient

from lawcrm.api.deps import get_mailbox_client
from lawcrm.clients.mailbox import MailboxClient
from lawcrm.config import settings
from lawcrm.models import Email
from tests.factories import HANDLER_ALICE, SOURCE_A, SOURCE_C, legacy_lead, new_lead, utc

API = settings.api_v1_prefix


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_missing_api_key(client: AsyncClient):
    """Test requests without the API key are rejected."""
    response = await client.get(f"{API}/handlers")
    assert response.status_code == 401
    assert response.json()["detail"] == "Missing API key"


@pytest.mark.asyncio
async def test_invalid_api_key(client: AsyncClient, auth_headers):
    headers = {**auth_headers, settings.api_key_header: "wrong"}
    response = await client.get(f"{API}/handlers", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_user_header_checks(client: AsyncClient, auth_headers):
    headers = {settings.api_key_header: auth_headers[settings.api_key_header]}
    response = await client.get(f"{API}/handlers", headers=headers)
    assert response.status_code == 401

    response = await client.get(f"{API}/handlers", headers={**headers, settings.user_id_header: "nope"})
    assert response.status_code == 400

    unknown = {**headers, settings.user_id_header: str(uuid.uuid4())}
    response = await client.get(f"{API}/handlers", headers=unknown)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_search_leads(client: AsyncClient, auth_headers, seeded):
    """Test search merges both schemas within the caller's sources."""
    seeded.add_all([
        new_lead(1, source_id=SOURCE_A, created_at=utc(2024, 5, 1)),
        new_lead(2, source_id=SOURCE_C, created_at=utc(2024, 5, 2)),
        legacy_lead(10, source_id=SOURCE_A, cdate=utc(2024, 4, 1)),
    ])
    await seeded.commit()

    response = await client.post(f"{API}/leads/search", json={}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [lead["id"] for lead in data["leads"]] == [1, "legacy_10"]
    assert data["leads"][1]["lead_type"] == "legacy"
    assert data["errors"] == []


@pytest.mark.asyncio
async def test_search_accepts_single_values(client: AsyncClient, auth_headers, seeded):
    seeded.add(new_lead(1, source_id=SOURCE_A))
    await seeded.commit()

    response = await client.post(
        f"{API}/leads/search",
        json={"source": "SourceA", "status": "Active", "stage": ""},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_get_lead_by_number(client: AsyncClient, auth_headers, seeded):
    seeded.add(new_lead(1, lead_number="L-100", name="Dana Levi"))
    await seeded.commit()

    response = await client.get(f"{API}/leads/by-number/L-100", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Dana Levi"

    response = await client.get(f"{API}/leads/by-number/404404", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_lead_by_number_hides_other_sources(client: AsyncClient, auth_headers, staff_headers, seeded):
    """Test leads outside the caller's sources are not found, even once cached."""
    seeded.add_all([
        new_lead(2, lead_number="L2", source_id=SOURCE_C),
        legacy_lead(77, source_id=SOURCE_C),
    ])
    await seeded.commit()

    for number in ("L2", "77"):
        response = await client.get(f"{API}/leads/by-number/{number}", headers=auth_headers)
        assert response.status_code == 404

    # a lead cached by another caller is still checked against each caller's sources
    response = await client.get(f"{API}/leads/by-number/L2", headers=staff_headers)
    assert response.status_code == 404
    response = await client.get(f"{API}/leads/by-number/L2", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_handler_routes_require_staff(client: AsyncClient, auth_headers, seeded):
    seeded.add(new_lead(5, source_id=SOURCE_C, stage=60))
    await seeded.commit()

    for path in ("/handlers", "/handlers/unassigned"):
        response = await client.get(f"{API}{path}", headers=auth_headers)
        assert response.status_code == 403

    response = await client.post(
        f"{API}/handlers/assign",
        json={"lead_ids": ["5"], "handler_id": HANDLER_ALICE},
        headers=auth_headers,
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Staff access required"


@pytest.mark.asyncio
async def test_list_handlers(client: AsyncClient, staff_headers):
    response = await client.get(f"{API}/handlers", params={"today": "2024-06-15"}, headers=staff_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    handler = data["handlers"][0]
    assert handler["id"] == HANDLER_ALICE
    assert handler["department"] == "Legal"
    assert handler["dues"]["total"] == 0.0


@pytest.mark.asyncio
async def test_unassigned_and_assign(client: AsyncClient, staff_headers, seeded):
    seeded.add_all([new_lead(1, stage=60), legacy_lead(10, stage=110)])
    await seeded.commit()

    response = await client.get(f"{API}/handlers/unassigned", headers=staff_headers)
    assert response.status_code == 200
    assert [lead["id"] for lead in response.json()["leads"]] == [1, "legacy_10"]

    response = await client.post(
        f"{API}/handlers/assign",
        json={"lead_ids": [1, "legacy_10"], "handler_id": HANDLER_ALICE},
        headers=staff_headers,
    )
    assert response.status_code == 200
    assert response.json() == {
        "handler_id": HANDLER_ALICE,
        "handler_name": "Alice Handler",
        "updated_new": 1,
        "updated_legacy": 1,
    }

    response = await client.get(f"{API}/handlers/unassigned", headers=staff_headers)
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_assign_validation_errors(client: AsyncClient, staff_headers):
    response = await client.post(f"{API}/handlers/assign", json={"lead_ids": ["1"]}, headers=staff_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Please select a handler"

    response = await client.post(
        f"{API}/handlers/assign", json={"lead_ids": [], "handler_id": HANDLER_ALICE}, headers=staff_headers
    )
    assert response.status_code == 400

    response = await client.post(
        f"{API}/handlers/assign", json={"lead_ids": ["1"], "handler_id": 999}, headers=staff_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_email_leads_and_thread(client: AsyncClient, auth_headers, seeded):
    inbox = settings.office_inbox_address
    seeded.add_all([
        Email(id=1, sender_email="client@example.com", sender_name="Dana", recipient_list=inbox,
              direction="incoming", subject="Visa", sent_at=utc(2024, 5, 1), is_read=False,
              attachments=[{"id": "a1", "name": "passport.pdf", "contentType": "application/pdf"}]),
        Email(id=2, sender_email="Client@example.com", recipient_list=inbox, direction="incoming",
              message_id="<m2>", subject="Visa", body_html="<p>Full body</p>",
              sent_at=utc(2024, 5, 1), is_read=True),
        Email(id=3, sender_email="no-reply@zoom.us", recipient_list=inbox, direction="incoming",
              sent_at=utc(2024, 5, 2)),
        Email(id=4, sender_email="other@example.com", recipient_list="someone@else.com",
              direction="incoming", sent_at=utc(2024, 5, 3)),
    ])
    await seeded.commit()

    response = await client.get(f"{API}/emails/leads", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    lead = data["leads"][0]
    assert lead["id"] == "client@example.com"
    assert lead["message_count"] == 2
    assert lead["unread_count"] == 1

    response = await client.get(f"{API}/emails/thread/Client@Example.com", headers=auth_headers)
    assert response.status_code == 200
    thread = response.json()
    assert thread["sender_email"] == "client@example.com"
    assert [message["id"] for message in thread["messages"]] == [2]


@pytest.mark.asyncio
async def test_mailbox_endpoints(app, client: AsyncClient, auth_headers):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/auth/status":
            return httpx.Response(200, json={"success": True, "data": {"connected": True}})
        if request.url.path == "/api/sync/now":
            return httpx.Response(500, json={"success": False, "error": "Sync failed"})
        return httpx.Response(404)

    app.dependency_overrides[get_mailbox_client] = lambda: MailboxClient(
        base_url="http://mail.test", transport=httpx.MockTransport(handler)
    )

    response = await client.get(f"{API}/emails/mailbox/status", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"connected": True}

    response = await client.post(f"{API}/emails/mailbox/sync", headers=auth_headers)
    assert response.status_code == 502
    assert response.json() == {"detail": "Sync failed", "upstream_status": 500}


@pytest.mark.asyncio
async def test_unreachable_mail_backend(app, client: AsyncClient, auth_headers):
    """Test transport failures to the mail backend surface as 502."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    app.dependency_overrides[get_mailbox_client] = lambda: MailboxClient(
        base_url="http://mail.test", transport=httpx.MockTransport(handler)
    )

    response = await client.get(f"{API}/emails/mailbox/status", headers=auth_headers)
    assert response.status_code == 502
    assert response.json() == {"detail": "Mail backend unreachable"}

    response = await client.get(f"{API}/emails/m1/attachments/a1", headers=auth_headers)
    assert response.status_code == 502
