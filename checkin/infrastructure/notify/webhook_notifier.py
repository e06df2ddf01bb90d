from __future__ import annotations

import httpx

from checkin.domain.errors import ExternalUnavailable
from checkin.domain.ports.daily_steps import NotifierPort


class ChatWebhookNotifier(NotifierPort):
    """Posts `{"text": ...}` to a Google-Chat-style incoming webhook."""

    def __init__(self, webhook_url: str, *, client: httpx.AsyncClient) -> None:
        self._url = webhook_url
        self._client = client

    async def notify(self, message: str) -> None:
        try:
            resp = await self._client.post(self._url, json={"text": message})
        except httpx.HTTPError as e:
            raise ExternalUnavailable(f"webhook HTTP error: {e}") from e
        if not resp.is_success:
            raise ExternalUnavailable(
                f"webhook responded {resp.status_code}: {resp.text[:200]}"
            )
