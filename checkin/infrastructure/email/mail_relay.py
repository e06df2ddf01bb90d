from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from checkin.domain.errors import ExternalUnavailable
from checkin.domain.ports.email_port import EmailPort

logger = logging.getLogger(__name__)


class HttpMailRelay(EmailPort):
    """
    Hands mail to an HTTP relay (`POST {base_url}/send`) that owns SMTP.

    The relay answers 2xx once the message is queued. Anything else, and any
    transport error, surfaces as ExternalUnavailable so callers can keep
    their own state (cooldowns, sent markers) untouched.
    """

    def __init__(
        self,
        base_url: str,
        *,
        sender: str | None = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ) -> None:
        self._send_url = base_url.rstrip("/") + "/send"
        self._sender = sender
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _message(self, to: str, subject: str, body: str) -> dict[str, Any]:
        message: dict[str, Any] = {"to": to, "subject": subject, "body": body}
        if self._sender:
            message["from"] = self._sender
        return message

    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        # the relay drops a second message carrying the same key
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else {}
        try:
            resp = await self._client.post(
                self._send_url, json=self._message(to, subject, body), headers=headers
            )
        except httpx.HTTPError as e:
            raise ExternalUnavailable(f"mail relay HTTP error: {e}") from e

        if resp.is_error:
            raise ExternalUnavailable(
                f"mail relay responded {resp.status_code}: {resp.text[:200]}"
            )
        logger.info("mail handed to relay", extra={"to": to, "subject": subject})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
