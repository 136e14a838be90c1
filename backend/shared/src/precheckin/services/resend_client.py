"""Thin client for the Resend transactional email API.

Sends one POST /emails with bearer authentication. No retries: a failed
call surfaces as EmailDeliveryError carrying the upstream status and body,
which callers log but never show to end users.
"""

import logging
from typing import Any

import httpx

from ..config import RESEND_API_URL

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when the email API rejects a message or cannot be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        """Initialize with message, upstream status and response body.

        Args:
            message: Human-readable error message.
            status_code: HTTP status from the email API, None on transport errors.
            details: Parsed upstream response body, if any.
        """
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ResendClient:
    """Client for sending a single email through Resend.

    Usage:
        client = ResendClient(api_key="re_123")
        result = client.send_email({"from": ..., "to": ..., "subject": ...})
    """

    def __init__(
        self,
        api_key: str,
        *,
        api_url: str = RESEND_API_URL,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Resend API key (sent as bearer token)
            api_url: Endpoint for sending emails
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client (tests use a
                MockTransport)
        """
        self._api_key = api_key
        self._api_url = api_url
        self._http = http_client or httpx.Client(timeout=timeout)

    def send_email(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send one email.

        Args:
            payload: Resend email body (from, to, subject, text, attachments...)

        Returns:
            Parsed Resend response, typically ``{"id": "..."}``.

        Raises:
            EmailDeliveryError: On transport failure or a non-2xx response.
        """
        try:
            response = self._http.post(
                self._api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error("Resend request failed: %s", e)
            raise EmailDeliveryError(f"Email API unreachable: {e}") from e

        body = _parse_body(response)
        if not response.is_success:
            raise EmailDeliveryError(
                f"Email API returned {response.status_code}",
                status_code=response.status_code,
                details=body,
            )
        return body if isinstance(body, dict) else {"response": body}

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
