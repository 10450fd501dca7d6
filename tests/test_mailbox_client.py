"""Tests for the mail backend client."""

import httpx
import pytest

from lawcrm.clients.mailbox import MailboxClient
from lawcrm.exceptions import MailboxApiError

BASE_URL = "http://mail.test"


def make_client(handler) -> MailboxClient:
    return MailboxClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_status_returns_data():
    """Test status is unwrapped from the envelope."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["user"] = request.url.params["userId"]
        return httpx.Response(200, json={"success": True, "data": {"connected": True, "email": "a@b.c"}})

    async with make_client(handler) as client:
        status = await client.get_status("u1")

    assert status == {"connected": True, "email": "a@b.c"}
    assert seen == {"path": "/api/auth/status", "user": "u1"}


@pytest.mark.asyncio
async def test_get_status_without_data_is_disconnected():
    async with make_client(lambda request: httpx.Response(200, json={"success": True})) as client:
        assert await client.get_status("u1") == {"connected": False}


@pytest.mark.asyncio
async def test_http_error_uses_backend_message():
    """Test non-2xx responses raise with the envelope error."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"success": False, "error": "Token expired"})

    async with make_client(handler) as client:
        with pytest.raises(MailboxApiError) as exc_info:
            await client.trigger_sync("u1")

    assert exc_info.value.message == "Token expired"
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_http_error_without_body_uses_reason():
    async with make_client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(MailboxApiError) as exc_info:
            await client.fetch_email_body("u1", "m1")
    assert exc_info.value.message == "Service Unavailable"


@pytest.mark.asyncio
async def test_unsuccessful_envelope_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Mailbox not connected"})

    async with make_client(handler) as client:
        with pytest.raises(MailboxApiError, match="Mailbox not connected"):
            await client.send_email({"userId": "u1", "to": ["x@example.com"]})


@pytest.mark.asyncio
async def test_trigger_sync_posts_reset_flag():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = request.read()
        return httpx.Response(200, json={"success": True, "data": {"queued": True}})

    async with make_client(handler) as client:
        assert await client.trigger_sync("u1", reset=True) == {"queued": True}

    assert seen["method"] == "POST"
    assert b'"reset":true' in seen["body"].replace(b" ", b"")


@pytest.mark.asyncio
async def test_missing_user_id_is_rejected_before_request():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async with make_client(handler) as client:
        with pytest.raises(ValueError, match="userId is required"):
            await client.get_status("")
        with pytest.raises(ValueError, match="userId and emailId are required"):
            await client.fetch_email_body("", "")


@pytest.mark.asyncio
async def test_get_login_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["redirectTo"] == "/email"
        return httpx.Response(200, json={"success": True, "url": "https://login.example/auth"})

    async with make_client(handler) as client:
        assert await client.get_login_url("u1", "/email") == "https://login.example/auth"


@pytest.mark.asyncio
async def test_get_login_url_missing_url():
    async with make_client(lambda request: httpx.Response(200, json={"success": True})) as client:
        with pytest.raises(MailboxApiError):
            await client.get_login_url("u1")


def test_attachment_download_url():
    client = MailboxClient(base_url=BASE_URL + "/")
    url = client.attachment_download_url("u1", "m/1", "att 2")
    assert url.startswith(f"{BASE_URL}/api/emails/m%2F1/attachments/att%202")
    assert url.endswith("?userId=u1")
    assert client.attachment_download_url("u1", "", "a") == ""


@pytest.mark.asyncio
async def test_download_attachment():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            content=b"%PDF",
            headers={
                "Content-Type": "application/pdf",
                "Content-Disposition": 'attachment; filename="passport.pdf"',
            },
        )

    async with make_client(handler) as client:
        content, file_name, content_type = await client.download_attachment("u1", "m1", "a1")

    assert content == b"%PDF"
    assert file_name == "passport.pdf"
    assert content_type == "application/pdf"


@pytest.mark.asyncio
async def test_download_attachment_defaults_and_errors():
    async with make_client(lambda request: httpx.Response(200, content=b"x")) as client:
        _, file_name, content_type = await client.download_attachment("u1", "m1", "a1")
    assert file_name == "attachment"
    assert content_type == "application/octet-stream"

    async with make_client(lambda request: httpx.Response(404, text="gone")) as client:
        with pytest.raises(MailboxApiError, match="gone"):
            await client.download_attachment("u1", "m1", "a1")

    with pytest.raises(ValueError):
        await MailboxClient(base_url=BASE_URL).download_attachment("u1", "", "a1")
