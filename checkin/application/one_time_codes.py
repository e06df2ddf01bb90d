from __future__ import annotations

import logging

import checkin.domain.services as domain_services
from checkin.domain.errors import CodeMismatch, CodeNotFound, RateLimited
from checkin.domain.ports.email_port import MailerPort
from checkin.domain.ports.ttl_store import TTLStorePort

logger = logging.getLogger(__name__)


def otp_key(email: str) -> str:
    return f"otp:{email}"


def cooldown_key(email: str) -> str:
    return f"cooldown:{email}"


class OneTimeCodeManager:
    """
    Email one-time codes.

    At most one live code per email; re-issuing is blocked while the
    cooldown marker exists. The marker is written only after the mail went
    out, so a failed delivery can be retried right away.
    """

    def __init__(
        self,
        store: TTLStorePort,
        mailer: MailerPort,
        *,
        code_ttl_seconds: int = 600,
        cooldown_seconds: int = 60,
    ) -> None:
        self._store = store
        self._mailer = mailer
        self._code_ttl = code_ttl_seconds
        self._cooldown = cooldown_seconds

    async def issue(self, email: str) -> None:
        if not email:
            raise ValueError("email is required")

        if await self._store.get(cooldown_key(email)):
            raise RateLimited()

        code = domain_services.generate_6digit_code()
        await self._store.set(otp_key(email), code, self._code_ttl)
        await self._mailer.send_code(email, code)
        await self._store.set(cooldown_key(email), "1", self._cooldown)
        logger.info("one-time code sent", extra={"email": email})

    async def verify(self, email: str, code: str) -> None:
        """
        Raise CodeNotFound / CodeMismatch, or consume the code.
        A mismatch keeps the code so the visitor can retry until it expires.
        """
        key = otp_key(email)
        # compare and consume in one store call; a code is spent at most once
        if code and await self._store.compare_and_delete(key, code):
            return
        if not await self._store.get(key):
            raise CodeNotFound()
        raise CodeMismatch()

    async def invalidate(self, email: str) -> None:
        await self._store.delete(otp_key(email))
