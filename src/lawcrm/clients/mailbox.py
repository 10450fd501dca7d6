"""HTTP client for the mail relay backend.

Every endpoint takes a ``userId`` and answers with a
``{"success": ..., "data" | "error": ...}`` envelope.
"""

import re
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from lawcrm.config import settings
from lawcrm.exceptions import MailboxApiError

logger = structlog.get_logger(__name__)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?', re.IGNORECASE)

DEFAULT_FILE_NAME = "attachment"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _require(**values: Any) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValueError(f"{' and '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")


def parse_envelope(response: httpx.Response) -> Any:
    """Decode a backend response, raising on HTTP or envelope errors."""
    payload: Any = None
    if response.content:
        try:
            payload = response.json()
        except ValueError:
            payload = response.text

    if not response.is_success:
        message = None
        if isinstance(payload, dict):
            message = payload.get("error")
        if not isinstance(message, str) or not message:
            message = response.reason_phrase or "Request failed"
        raise MailboxApiError(message, response.status_code)

    if isinstance(payload, dict) and payload.get("success") is False:
        message = payload.get("error")
        raise MailboxApiError(message if isinstance(message, str) and message else "Request failed", response.status_code)

    return payload


class MailboxClient:
    """
    Async client for the mailbox backend.

    Usage:
        client = MailboxClient()
        status = await client.get_status(user_id)
        await client.close()
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.mailbox_api_base_url).rstrip("/")
        self.timeout = timeout or settings.mailbox_api_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "MailboxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Mailbox backend unreachable", path=path, error=str(e))
            raise
        try:
            return parse_envelope(response)
        except MailboxApiError as e:
            logger.warning("Mailbox backend error", path=path, status=e.status_code, error=e.message)
            raise

    async def get_status(self, user_id: str) -> dict:
        """Mailbox connection status; ``{"connected": False}`` when the backend has none."""
        _require(userId=user_id)
        payload = await self._request("GET", "/api/auth/status", params={"userId": user_id})
        data = payload.get("data") if isinstance(payload, dict) else None
        return data or {"connected": False}

    async def get_login_url(self, user_id: str, redirect_to: str | None = None) -> str:
        _require(userId=user_id)
        params = {"userId": user_id}
        if redirect_to:
            params["redirectTo"] = redirect_to
        payload = await self._request("GET", "/api/auth/login", params=params)
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise MailboxApiError("Backend did not return a login URL", 200)
        return url

    async def trigger_sync(self, user_id: str, reset: bool = False) -> Any:
        _require(userId=user_id)
        payload = await self._request("POST", "/api/sync/now", json={"userId": user_id, "reset": reset})
        return payload.get("data") if isinstance(payload, dict) else None

    async def send_email(self, payload: dict) -> Any:
        """Send through the user's mailbox. ``payload`` must carry ``userId``."""
        _require(userId=(payload or {}).get("userId"))
        response = await self._request("POST", "/api/emails/send", json=payload)
        return response.get("data") if isinstance(response, dict) else None

    async def fetch_email_body(self, user_id: str, email_id: str) -> str:
        _require(userId=user_id, emailId=email_id)
        payload = await self._request(
            "GET", f"/api/emails/{quote(str(email_id), safe='')}/body", params={"userId": user_id}
        )
        body = payload.get("body") if isinstance(payload, dict) else None
        return body or ""

    def attachment_download_url(self, user_id: str, email_id: str, attachment_id: str) -> str:
        """Absolute download URL, or ``""`` when any part is missing."""
        if not user_id or not email_id or not attachment_id:
            return ""
        path = f"/api/emails/{quote(str(email_id), safe='')}/attachments/{quote(str(attachment_id), safe='')}"
        return str(httpx.URL(f"{self.base_url}{path}", params={"userId": user_id}))

    async def download_attachment(self, user_id: str, email_id: str, attachment_id: str) -> tuple[bytes, str, str]:
        """Attachment content with its file name and content type."""
        url = self.attachment_download_url(user_id, email_id, attachment_id)
        if not url:
            raise ValueError("Invalid download parameters")

        client = await self._get_client()
        response = await client.get(url)
        if not response.is_success:
            message = response.text or "Failed to download attachment"
            logger.warning("Attachment download failed", email_id=email_id, status=response.status_code)
            raise MailboxApiError(message, response.status_code)

        match = _FILENAME_RE.search(response.headers.get("Content-Disposition", ""))
        file_name = match.group(1) if match else DEFAULT_FILE_NAME
        content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        return response.content, file_name, content_type
