from __future__ import annotations

from typing import Protocol


class EmailPort(Protocol):
    async def send(
        self,
        *,
        to: str,
        subject: str,
        body: str,
        idempotency_key: str | None = None,
    ) -> None:
        """Send an email. Raises ExternalUnavailable on delivery failure."""


class MailerPort(Protocol):
    async def send_code(self, email: str, code: str) -> None:
        """Deliver a one-time code."""

    async def send_invitation(self, email: str, register_url: str) -> None:
        """Deliver a registration invitation link."""
